from datetime import date, datetime, timedelta
from decimal import Decimal

from django.urls import reverse
from django.utils import timezone

from proposals.models import Proposal
from reports.services import (
    DEFAULT_PERIOD,
    assignee_ranking,
    build_report,
    monthly_breakdown,
    normalize_period,
    summarize,
)
from users.models import RoleCode
from tests.base import BaseAppTestCase
from tests.factories import Factory


def _proposal(status=Proposal.Status.PENDING, value="1000.00", assignee="Ana", created_at=None):
    return Proposal(
        status=status,
        proposal_value=Decimal(value),
        cedible_value=Decimal(value),
        assignee=assignee,
        created_at=created_at or timezone.now(),
    )


class ReportAggregationTests(BaseAppTestCase):
    def test_summarize_counts_and_values(self):
        proposals = [
            _proposal(Proposal.Status.APPROVED, "3000.00"),
            _proposal(Proposal.Status.PENDING, "1000.00"),
            _proposal(Proposal.Status.REJECTED, "500.00"),
            _proposal(Proposal.Status.APPROVED, "1500.00"),
        ]
        summary = summarize(proposals)

        self.assertEqual(summary["total"], 4)
        self.assertEqual(summary["approved"], 2)
        self.assertEqual(summary["pending"], 1)
        self.assertEqual(summary["rejected"], 1)
        self.assertEqual(summary["total_value"], Decimal("6000.00"))
        self.assertEqual(summary["approved_value"], Decimal("4500.00"))
        self.assertEqual(summary["average_value"], Decimal("1500.00"))
        self.assertEqual(summary["conversion_rate"], Decimal("50.0"))

    def test_summarize_empty_list(self):
        summary = summarize([])
        self.assertEqual(summary["total"], 0)
        self.assertEqual(summary["average_value"], Decimal("0.00"))
        self.assertEqual(summary["conversion_rate"], Decimal("0.0"))

    def test_monthly_breakdown_covers_last_six_months(self):
        now = timezone.make_aware(datetime(2025, 6, 15, 12, 0))
        proposals = [
            _proposal(Proposal.Status.APPROVED, "100.00", created_at=timezone.make_aware(datetime(2025, 6, 1, 9, 0))),
            _proposal(Proposal.Status.PENDING, "50.00", created_at=timezone.make_aware(datetime(2025, 6, 10, 9, 0))),
            _proposal(created_at=timezone.make_aware(datetime(2025, 1, 20, 9, 0))),
            _proposal(created_at=timezone.make_aware(datetime(2024, 12, 31, 9, 0))),
        ]
        rows = monthly_breakdown(proposals, now=now)

        self.assertEqual([row["month"] for row in rows], [date(2025, m, 1) for m in range(1, 7)])
        self.assertEqual(rows[-1]["count"], 2)
        self.assertEqual(rows[-1]["approved"], 1)
        self.assertEqual(rows[-1]["value"], Decimal("150.00"))
        self.assertEqual(rows[0]["count"], 1)
        self.assertTrue(all(row["label"] for row in rows))

    def test_ranking_orders_by_approvals(self):
        proposals = [
            _proposal(Proposal.Status.APPROVED, "100.00", assignee="Bruno"),
            _proposal(Proposal.Status.APPROVED, "900.00", assignee="Ana"),
            _proposal(Proposal.Status.PENDING, "900.00", assignee="Ana"),
            _proposal(Proposal.Status.APPROVED, "100.00", assignee="Bruno"),
            _proposal(Proposal.Status.REJECTED, "100.00", assignee=""),
        ]
        ranking = assignee_ranking(proposals)

        self.assertEqual([row["assignee"] for row in ranking], ["Bruno", "Ana", "Sem responsável"])
        self.assertEqual(ranking[0]["conversion_rate"], Decimal("100.0"))
        self.assertEqual(ranking[1]["conversion_rate"], Decimal("50.0"))
        self.assertEqual(ranking[1]["value"], Decimal("900.00"))

    def test_normalize_period(self):
        self.assertEqual(normalize_period("90"), 90)
        self.assertEqual(normalize_period("15"), DEFAULT_PERIOD)
        self.assertEqual(normalize_period(None), DEFAULT_PERIOD)
        self.assertEqual(normalize_period("abc"), DEFAULT_PERIOD)


class ReportViewTests(BaseAppTestCase):
    def setUp(self):
        self.user = self.login_as(self.make_user(role=RoleCode.USER))
        self.company = self.user.company
        self.grant_permissions(RoleCode.USER, ["reports:dashboard"])
        now = timezone.now()
        Factory.proposal(company=self.company, created_at=now - timedelta(days=5), status=Proposal.Status.APPROVED)
        Factory.proposal(company=self.company, created_at=now - timedelta(days=60))
        Factory.proposal(company=Factory.company(), created_at=now - timedelta(days=1))

    def test_build_report_respects_period_and_company(self):
        self.assertEqual(build_report(self.company, 30)["summary"]["total"], 1)
        report = build_report(self.company, 90)
        self.assertEqual(report["period"], 90)
        self.assertEqual(report["summary"]["total"], 2)
        self.assertEqual(report["summary"]["approved"], 1)

    def test_dashboard_reads_period(self):
        response = self.client.get(reverse("reports:dashboard"), {"periodo": "90"})
        self.assertEqual(response.status_code, 200)
        self.assertTemplateUsed(response, "reports/dashboard.html")
        self.assertEqual(response.context["period"], 90)
        self.assertEqual(response.context["summary"]["total"], 2)

    def test_dashboard_htmx_returns_body_partial(self):
        response = self.client.get(
            reverse("reports:dashboard"),
            {"periodo": "7"},
            HTTP_HX_REQUEST="true",
        )
        self.assertTemplateUsed(response, "reports/_report_body.html")
        self.assertTemplateNotUsed(response, "reports/dashboard.html")
        self.assertEqual(response.context["summary"]["total"], 1)

    def test_dashboard_requires_permission(self):
        self.login_as(self.make_member(self.company, role=RoleCode.MODERATOR))
        self.assertEqual(self.client.get(reverse("reports:dashboard")).status_code, 403)
