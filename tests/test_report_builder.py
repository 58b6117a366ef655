"""End-to-end tests for Schedule A report assembly."""

import json
from datetime import date
from decimal import Decimal

import pytest

from schedule_a_core import ScheduleAReportBuilder, build_schedule_a
from schedule_a_core.config import ScheduleAConfig
from schedule_a_core.exceptions import ValidationError
from schedule_a_core.models import LineId, SupportPart
from schedule_a_core.report_builder import ScheduleAContext

from conftest import DONATIONS, GOVERNMENT_GRANTS, INTEREST, MISC_INCOME, PROGRAM_FEES, RENT


@pytest.fixture
def builder(config) -> ScheduleAReportBuilder:
    return ScheduleAReportBuilder(config)


@pytest.fixture
def mixed_transactions(make_txn, small_donor_transactions):
    """Small donors plus every other kind of receipt and some expenses."""
    return small_donor_transactions + [
        make_txn("2021-02-01", "12000", DONATIONS, donor_id=1),
        make_txn("2022-02-01", "9000", DONATIONS, donor_id=1),
        make_txn("2022-08-01", "4000", DONATIONS, donor_id=2),
        make_txn("2023-03-01", "15000", PROGRAM_FEES, client_id=5),
        make_txn("2023-04-01", "3000", GOVERNMENT_GRANTS),
        make_txn("2024-01-15", "2500", INTEREST),
        make_txn("2024-02-15", "800", MISC_INCOME),
        make_txn("2024-03-15", "6000", RENT, type="expense"),
        make_txn("2019-05-01", "7000", DONATIONS, donor_id=3),
    ]


class TestPublicSupportScenarios:
    """Worked Schedule A scenarios."""

    def test_many_small_donors_is_fully_public(self, builder, small_donor_transactions, categories):
        report = builder.build(ScheduleAContext(tax_year=2024), small_donor_transactions, categories)
        data = report.data

        assert data.part_ii.section_a.line1 == ("20000.00",) * 5
        assert data.part_ii.section_a.line5 == "0.00"
        assert data.part_ii.section_c.line14 == "100.00"
        assert data.part_ii.section_c.line16a is True
        assert data.summary.total_public_support == "100000.00"
        assert data.summary.total_support == "100000.00"
        assert data.summary.meets_threshold is True
        assert data.part_iii.section_c.line15 == "100.00"
        assert data.part_iii.section_d.line17 == "0.00"
        assert data.part_iii.section_d.line19a is True

    def test_large_donor_excess_is_excluded(self, builder, large_donor_transactions, categories):
        report = builder.build(ScheduleAContext(tax_year=2024), large_donor_transactions, categories)
        section_a = report.data.part_ii.section_a

        assert section_a.line4 == ("0.00", "0.00", "10000.00", "0.00", "0.00")
        assert section_a.line5 == "8000.00"
        assert section_a.line6 == "2000.00"
        assert report.data.part_ii.section_b.line11 == "100000.00"
        assert report.data.part_ii.section_c.line14 == "2.00"
        assert report.data.part_ii.section_c.line18 is True

    def test_large_donor_part_iii_excess_lands_in_gift_year(self, builder, large_donor_transactions, categories):
        report = builder.build(ScheduleAContext(tax_year=2024), large_donor_transactions, categories)
        section_a = report.data.part_iii.section_a

        assert section_a.line7b == ("0.00", "0.00", "5000.00", "0.00", "0.00")
        assert section_a.line8 == ("0.00", "0.00", "5000.00", "0.00", "0.00")
        assert report.data.part_iii.section_c.line15 == "5.00"
        assert report.data.part_iii.section_d.line17 == "90.00"
        assert report.data.part_iii.section_d.line20 is True

    @pytest.mark.parametrize(
        "public, other, percentage, line16a",
        [
            ("3333", "6667", "33.33", True),
            ("3332", "6668", "33.32", False),
        ],
    )
    def test_one_third_boundary(self, builder, categories, make_txn, public, other, percentage, line16a):
        transactions = [
            make_txn("2024-03-01", public, GOVERNMENT_GRANTS),
            make_txn("2024-03-01", other, INTEREST),
        ]

        report = builder.build(ScheduleAContext(tax_year=2024), transactions, categories)
        section_c = report.data.part_ii.section_c

        assert section_c.line14 == percentage
        assert section_c.line16a is line16a
        assert section_c.line18 is not line16a
        # Part III compares strictly above 33 1/3%
        assert report.data.part_iii.section_d.line19a is False

    def test_facts_and_circumstances(self, builder, categories, make_txn):
        transactions = [
            make_txn("2024-03-01", "1500", GOVERNMENT_GRANTS),
            make_txn("2024-03-01", "8500", INTEREST),
        ]
        context = ScheduleAContext(tax_year=2024, facts_and_circumstances=True)

        report = builder.build(context, transactions, categories)

        assert report.data.part_ii.section_c.line17a is True
        assert report.data.summary.meets_facts_and_circumstances is True
        assert report.data.summary.meets_threshold is False

    def test_first_five_years_checks_line_13_only(self, builder, categories, make_txn):
        transactions = [make_txn("2024-03-01", "100", DONATIONS, donor_id=1)]
        context = ScheduleAContext(tax_year=2024, first_five_years=True)

        report = builder.build(context, transactions, categories)
        section_c = report.data.part_ii.section_c

        assert section_c.line13 is True
        assert not any([section_c.line16a, section_c.line16b, section_c.line17a,
                        section_c.line17b, section_c.line18])
        assert report.data.part_iii.section_c.line14 is True
        assert report.part_ii_outcome.path[-1].line == "line13"

    def test_no_support(self, builder, categories):
        report = builder.build(ScheduleAContext(tax_year=2024), [], categories)
        data = report.data

        assert data.part_ii.section_a.line5 == "0.00"
        assert data.part_ii.section_c.line14 == "0.00"
        assert data.part_ii.section_c.line15 == "0.00"
        assert data.part_ii.section_c.line18 is True
        assert data.part_iii.section_d.line20 is True
        assert data.summary.total_support == "0.00"
        assert "NO_SUPPORT" in [w.code for w in report.warnings]

    def test_prior_window_is_recomputed(self, builder, categories, make_txn):
        transactions = [
            make_txn("2019-04-01", "5000", GOVERNMENT_GRANTS),
            make_txn("2024-04-01", "10000", INTEREST),
        ]

        report = builder.build(ScheduleAContext(tax_year=2024), transactions, categories)

        assert [agg.year for agg in report.current_window] == [2020, 2021, 2022, 2023, 2024]
        assert [agg.year for agg in report.prior_window] == [2019, 2020, 2021, 2022, 2023]
        assert report.prior_window[0].get(LineId.II_2) == Decimal("5000")
        assert report.data.part_ii.section_a.line2 == ("0.00",) * 5
        assert report.data.part_ii.section_c.line14 == "0.00"
        assert report.data.part_ii.section_c.line15 == "100.00"
        assert report.data.part_ii.section_c.line16b is True

    def test_disqualified_person_excluded_in_part_iii(self, builder, categories, make_txn):
        transactions = [
            make_txn("2023-01-10", "3000", DONATIONS, donor_id=9),
            make_txn("2023-02-10", "3000", DONATIONS, donor_id=10),
        ]
        context = ScheduleAContext(tax_year=2024, disqualified_contributors={"donor:9"})

        report = builder.build(context, transactions, categories)
        section_a = report.data.part_iii.section_a

        assert section_a.line7a[3] == "3000.00"
        assert section_a.line7b[3] == "0.00"
        assert section_a.line8[3] == "3000.00"


class TestScheduleInvariants:
    """Properties that hold for any snapshot."""

    def test_idempotent(self, builder, mixed_transactions, categories):
        context = ScheduleAContext(tax_year=2024, disqualified_contributors={"donor:2"})

        first = builder.build(context, mixed_transactions, categories)
        second = builder.build(context, list(reversed(mixed_transactions)), categories)

        assert first.data.to_json() == second.data.to_json()

    def test_internally_consistent(self, builder, mixed_transactions, categories):
        context = ScheduleAContext(tax_year=2024, disqualified_contributors={"donor:2"})
        report = builder.build(context, mixed_transactions, categories)

        for agg in report.current_window:
            assert agg.get(LineId.II_4) == agg.get(LineId.II_1) + agg.get(LineId.II_2) + agg.get(LineId.II_3)
            assert agg.get(LineId.III_7C) == agg.get(LineId.III_7A) + agg.get(LineId.III_7B)
            assert agg.get(LineId.III_8) == agg.get(LineId.III_6) - agg.get(LineId.III_7C)

        section_a = report.data.part_ii.section_a
        line4_total = sum(Decimal(v) for v in section_a.line4)
        assert Decimal(section_a.line6) == line4_total - Decimal(section_a.line5)

        section_b = report.data.part_ii.section_b
        line11 = sum(Decimal(v) for line in (section_b.line7, section_b.line8, section_b.line9, section_b.line10)
                     for v in line)
        assert Decimal(section_b.line11) == line11

    @pytest.mark.parametrize("first_five_years", [None, False, True])
    @pytest.mark.parametrize("facts_and_circumstances", [None, False, True])
    def test_exactly_one_box_per_part(self, builder, mixed_transactions, categories,
                                      first_five_years, facts_and_circumstances):
        context = ScheduleAContext(
            tax_year=2024,
            first_five_years=first_five_years,
            facts_and_circumstances=facts_and_circumstances,
        )
        report = builder.build(context, mixed_transactions, categories)
        c2 = report.data.part_ii.section_c
        c3, d3 = report.data.part_iii.section_c, report.data.part_iii.section_d

        assert sum([c2.line13, c2.line16a, c2.line16b, c2.line17a, c2.line17b, c2.line18]) == 1
        assert sum([c3.line14, d3.line19a, d3.line19b, d3.line20]) == 1

    def test_expenses_never_count(self, builder, categories, make_txn):
        transactions = [make_txn("2024-01-01", "5000", DONATIONS, type="expense")]

        report = builder.build(ScheduleAContext(tax_year=2024), transactions, categories)

        assert report.data.summary.total_support == "0.00"


class TestOutputContract:
    """ScheduleAData serialization and Part I echo."""

    def test_json_uses_camel_case_keys(self, builder, small_donor_transactions, categories):
        report = builder.build(ScheduleAContext(tax_year=2024), small_donor_transactions, categories)

        payload = json.loads(report.data.to_json())

        assert set(payload) == {"partI", "partII", "partIII", "partIV", "partV", "summary"}
        assert payload["partIV"] is None and payload["partV"] is None
        assert set(payload["partIII"]) == {"sectionA", "sectionB", "sectionC", "sectionD"}
        assert payload["partII"]["sectionA"]["years"] == [2020, 2021, 2022, 2023, 2024]
        assert payload["partII"]["sectionC"]["line16a"] is True
        assert payload["summary"]["publicSupportPercentage"] == "100.00"
        assert payload["summary"]["partIIIMeetsThreshold"] is True

    def test_lettered_lines_keep_lowercase_keys(self, builder, categories):
        report = builder.build(ScheduleAContext(tax_year=2024), [], categories)

        payload = json.loads(report.data.to_json())
        part_ii, part_iii = payload["partII"], payload["partIII"]

        assert set(payload["partI"]) == {"publicCharityType"}
        assert set(part_ii) == {"sectionA", "sectionB", "sectionC"}
        assert set(part_ii["sectionA"]) == {"years", "line1", "line2", "line3", "line4", "line5", "line6"}
        assert set(part_ii["sectionB"]) == {"years", "line7", "line8", "line9", "line10", "line11", "line12"}
        assert set(part_ii["sectionC"]) == {
            "line13", "line14", "line15", "line16a", "line16b", "line17a", "line17b", "line18",
        }
        assert set(part_iii["sectionA"]) == {
            "years", "line1", "line2", "line3", "line4", "line5", "line6",
            "line7a", "line7b", "line7c", "line8",
        }
        assert set(part_iii["sectionB"]) == {
            "years", "line9", "line10a", "line10b", "line10c", "line11", "line12", "line13",
        }
        assert set(part_iii["sectionC"]) == {"line14", "line15", "line16"}
        assert set(part_iii["sectionD"]) == {"line17", "line18", "line19a", "line19b", "line20"}
        assert set(payload["summary"]) == {
            "totalPublicSupport", "totalSupport", "publicSupportPercentage", "meetsThreshold",
            "meetsFactsAndCircumstances", "partIIIPublicSupport", "partIIITotalSupport",
            "partIIIPublicSupportPercentage", "partIIIInvestmentPercentage", "partIIIMeetsThreshold",
        }

    def test_part_i_echo_selects_relevant_part(self, builder, large_donor_transactions, categories):
        context = ScheduleAContext(tax_year=2024, public_charity_type=10)

        report = builder.build(context, large_donor_transactions, categories)

        assert report.data.part_i.public_charity_type == 10
        assert report.relevant_part == SupportPart.PART_III
        assert report.qualifies is False

    def test_part_ii_charity_types(self):
        for charity_type in (5, 7, 8):
            assert ScheduleAContext(tax_year=2024, public_charity_type=charity_type).relevant_part == SupportPart.PART_II
        assert ScheduleAContext(tax_year=2024, public_charity_type=1).relevant_part is None

    def test_context_accepts_camel_case(self):
        context = ScheduleAContext.model_validate(
            {"taxYear": 2024, "firstFiveYears": True, "disqualifiedContributors": ["donor:1"]}
        )
        assert context.first_five_years is True
        assert context.disqualified_contributors == frozenset({"donor:1"})


class TestWarningsAndAudit:
    """Data-quality warnings and the audit trail."""

    def test_unmatched_disqualified_key_warns(self, builder, small_donor_transactions, categories):
        context = ScheduleAContext(tax_year=2024, disqualified_contributors={"donor:404"})

        report = builder.build(context, small_donor_transactions, categories)

        warning = next(w for w in report.warnings if w.code == "UNMATCHED_DISQUALIFIED_PERSON")
        assert "donor:404" in warning.message

    def test_missing_flags_noted(self, builder, small_donor_transactions, categories):
        report = builder.build(ScheduleAContext(tax_year=2024), small_donor_transactions, categories)
        codes = [w.code for w in report.warnings]

        assert "FIRST_FIVE_YEARS_NOT_PROVIDED" in codes
        assert "FACTS_AND_CIRCUMSTANCES_NOT_PROVIDED" in codes

    def test_unknown_category_warning_carries_transaction(self, builder, categories, make_txn):
        txn = make_txn("2024-01-01", "100", 999)

        report = builder.build(ScheduleAContext(tax_year=2024), [txn], categories)

        warning = next(w for w in report.warnings if w.code == "UNKNOWN_CATEGORY")
        assert warning.transaction_ids == (txn.id,)
        assert report.data.part_ii.section_b.line10[-1] == "100.00"

    def test_audit_log_recorded(self, builder, small_donor_transactions, categories):
        report = builder.build(ScheduleAContext(tax_year=2024), small_donor_transactions, categories)
        assert [entry.step for entry in report.audit_log][:3] == [
            "current_part_ii_public_support",
            "current_part_ii_total_support",
            "current_part_ii_public_support_percentage",
        ]

    def test_audit_log_can_be_disabled(self, small_donor_transactions, categories):
        builder = ScheduleAReportBuilder(ScheduleAConfig(env="test", record_audit_log=False))

        report = builder.build(ScheduleAContext(tax_year=2024), small_donor_transactions, categories)

        assert report.audit_log == []


class TestCallerContract:
    """Contract violations raise ValidationError."""

    def test_tax_year_below_minimum(self, builder, categories):
        with pytest.raises(ValidationError) as exc_info:
            builder.build(ScheduleAContext(tax_year=1999), [], categories)
        assert exc_info.value.field == "tax_year"

    def test_tax_year_before_formation(self, builder, categories):
        with pytest.raises(ValidationError, match="formation"):
            builder.build(ScheduleAContext(tax_year=2018, formation_year=2020), [], categories)

    def test_future_tax_year(self, builder, categories):
        with pytest.raises(ValidationError):
            builder.build(ScheduleAContext(tax_year=date.today().year + 1), [], categories)

    def test_tax_year_after_as_of_year(self, categories):
        builder = ScheduleAReportBuilder(ScheduleAConfig(env="test", as_of_year=2022))

        with pytest.raises(ValidationError) as exc_info:
            builder.build(ScheduleAContext(tax_year=2023), [], categories)
        assert exc_info.value.details["constraint"] == "tax_year <= 2022"

        assert builder.build(ScheduleAContext(tax_year=2022), [], categories).tax_year == 2022

    def test_formation_year_equal_to_tax_year_allowed(self, builder, categories):
        report = builder.build(ScheduleAContext(tax_year=2020, formation_year=2020), [], categories)
        assert report.tax_year == 2020

    def test_build_schedule_a_rejects_bad_charity_type(self, categories):
        with pytest.raises(ValidationError, match="Invalid Schedule A request"):
            build_schedule_a([], categories, 2024, public_charity_type=13, config=ScheduleAConfig(env="test"))

    def test_build_schedule_a(self, small_donor_transactions, categories):
        report = build_schedule_a(
            small_donor_transactions,
            categories,
            2024,
            organization_id=7,
            first_five_years=False,
            facts_and_circumstances=False,
            config=ScheduleAConfig(env="test"),
        )
        assert report.organization_id == 7
        assert report.data.part_ii.section_c.line16a is True
