"""Tests for project point distribution."""

from datetime import date, timedelta

import pytest

from points_kernel.domain.dtos import ProjectSnapshot
from points_kernel.domain.types import TransactionType
from points_kernel.exceptions import (
    ProjectAlreadyDistributedError,
    ProjectNotEligibleError,
)

END = date(2026, 3, 1)


@pytest.fixture
def project(user_id):
    def _make(budget=1000, members=3, team=None):
        return ProjectSnapshot(
            id=f"proj-{user_id('p')}",
            name="Onboarding revamp",
            point_budget=budget,
            end_date=END,
            team_member_ids=tuple(team if team is not None else [user_id("m") for _ in range(members)]),
        )

    return _make


class TestDistributeProjectPoints:
    def test_on_time(self, ledger, project):
        p = project(budget=900, members=3)

        result = ledger.distribute_project_points(p, END)

        assert result.actual_points == 900
        assert result.points_per_member == 300
        assert result.overdue_days == 0
        for member in p.team_member_ids:
            acct = ledger.get_account(member)
            assert acct.balance == 300
            assert acct.total_earned == 300
            row = ledger.get_history(member)[0]
            assert row.type == TransactionType.RECEIVED
            assert row.project_id == p.id
            assert row.amount == 300

    def test_overdue_penalty(self, ledger, project):
        p = project(budget=1000, members=3)

        result = ledger.distribute_project_points(p, END + timedelta(days=10))

        assert result.actual_points == 900
        assert result.points_per_member == 300
        assert result.penalty_percent == 10
        row = ledger.get_history(p.team_member_ids[0])[0]
        assert "10%" in row.description

    def test_remainder_not_paid(self, ledger, project):
        p = project(budget=100, members=3)
        result = ledger.distribute_project_points(p, END)
        assert result.points_per_member == 33
        assert ledger.get_account(p.team_member_ids[0]).balance == 33

    def test_duplicate_members_paid_once(self, ledger, project, user_id):
        m = user_id("m")
        p = project(budget=100, team=[m, m])
        result = ledger.distribute_project_points(p, END)
        assert result.member_count == 1
        assert ledger.get_account(m).balance == 100

    def test_only_once(self, ledger, project):
        p = project()
        ledger.distribute_project_points(p, END)

        with pytest.raises(ProjectAlreadyDistributedError):
            ledger.distribute_project_points(p, END)

        assert ledger.get_account(p.team_member_ids[0]).balance == 333

    def test_too_late_records_zero_payout(self, ledger, project):
        p = project()
        result = ledger.distribute_project_points(p, END + timedelta(days=120))
        assert result.actual_points == 0
        assert ledger.get_account(p.team_member_ids[0]) is None
        with pytest.raises(ProjectAlreadyDistributedError):
            ledger.distribute_project_points(p, END)

    def test_no_team(self, ledger, project):
        with pytest.raises(ProjectNotEligibleError):
            ledger.distribute_project_points(project(team=[]), END)

    def test_no_budget(self, ledger, project):
        with pytest.raises(ProjectNotEligibleError):
            ledger.distribute_project_points(project(budget=0), END)


class TestCalculateProjectPoints:
    def test_pure_calculation(self, ledger):
        calc = ledger.calculate_project_points(500, END, END + timedelta(days=20))
        assert calc.actual_points == 400
