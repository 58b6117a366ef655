"""Tests for the exception hierarchy."""

from schedule_a_core.exceptions import ConfigurationError, ScheduleAError, ValidationError


class TestExceptions:
    """Test suite for ScheduleAError and subclasses."""

    def test_base_error(self):
        error = ScheduleAError("Something failed", details={"step": "aggregate"})

        assert str(error) == "Something failed"
        assert error.details == {"step": "aggregate"}
        assert error.recoverable is False
        assert repr(error) == (
            "ScheduleAError(message='Something failed', details={'step': 'aggregate'}, recoverable=False)"
        )

    def test_validation_error_records_context(self):
        error = ValidationError(
            "Tax year precedes organization formation",
            field="tax_year",
            value=2009,
            constraint="tax_year >= 2012",
        )

        assert isinstance(error, ScheduleAError)
        assert error.recoverable is True
        assert error.details == {"field": "tax_year", "value": 2009, "constraint": "tax_year >= 2012"}

    def test_configuration_error_records_context(self):
        error = ConfigurationError(
            "Unknown contributor fallback policy",
            config_key="SCHEDULE_A_CONTRIBUTOR_FALLBACK",
            expected="description or distinct",
            actual="fuzzy",
        )

        assert error.recoverable is False
        assert error.details["config_key"] == "SCHEDULE_A_CONTRIBUTOR_FALLBACK"
        assert error.details["actual"] == "fuzzy"

    def test_details_not_shared_between_instances(self):
        first = ValidationError("a", field="x")
        second = ValidationError("b")

        assert "field" not in second.details
        assert first.details == {"field": "x"}
