"""
Unit tests for ResultProcessor

Tests:
- Candidate type filtering
- Time, status, priority filters and priority sort
- Assignment resolution (me / name / team / team members)
- Count/list rendering and empty-result sentences
- Trend and distribution aggregation
"""
from unittest.mock import AsyncMock

import pytest

from ticket_search.exceptions import SourceReadError
from ticket_search.models.schemas import QueryIntent, TeamRef, UserRef
from ticket_search.services.result_processor import (
    ResultProcessor,
    filter_by_time_range,
    sort_by_priority,
)
from ticket_search.tests.fakes import (
    NOW,
    TODAY_TS,
    TWO_DAYS_AGO_TS,
    YESTERDAY_TS,
    FakeTicketRepository,
    make_candidate,
    make_comment_candidate,
)


def intent(query_type="list", visualization="none", **filters):
    return QueryIntent.model_validate({
        "queryType": query_type,
        "filters": filters,
        "visualization": visualization
    })


def ids_in(text):
    return [line.split('href="/tickets/')[1].split('"')[0] for line in text.splitlines()[1:]]


@pytest.fixture
def repository():
    return FakeTicketRepository(
        users=[
            UserRef(id=42, full_name="Alice Agent"),
            UserRef(id="u-7", full_name="Bob Builder"),
        ],
        teams=[
            TeamRef(id=3, name="Billing"),
            TeamRef(id=5, name="Approvers"),
        ],
        team_members={"5": ["42", "u-7"]},
        current_user=42
    )


@pytest.fixture
def processor(repository, fixed_clock):
    return ResultProcessor(repository, clock=fixed_clock)


class TestCandidateFiltering:
    """Test that only ticket documents reach the pipeline"""

    @pytest.mark.asyncio
    async def test_comments_are_excluded(self, processor):
        candidates = [make_comment_candidate(10, 1), make_candidate(1), make_comment_candidate(11, 1)]

        response = await processor.process(candidates, intent("search"))

        assert response.text == "Found 1 ticket matching your query."
        assert response.data is None


class TestTimeFilter:
    """Test the today / yesterday filter"""

    def test_day_keeps_today_only(self):
        candidates = [
            make_candidate(1, created_at=TODAY_TS),
            make_candidate(2, created_at=YESTERDAY_TS),
            make_candidate(3, created_at=TWO_DAYS_AGO_TS),
        ]

        kept = filter_by_time_range(candidates, "day", None, NOW.date())

        assert [c.metadata["id"] for c in kept] == ["1"]

    def test_yesterday_keeps_yesterday_only(self):
        candidates = [
            make_candidate(1, created_at=TODAY_TS),
            make_candidate(2, created_at=YESTERDAY_TS),
            make_candidate(3, created_at=TWO_DAYS_AGO_TS),
        ]

        kept = filter_by_time_range(candidates, "yesterday", None, NOW.date())

        assert [c.metadata["id"] for c in kept] == ["2"]

    def test_closed_status_uses_updated_at(self):
        candidates = [
            make_candidate(1, status="closed", created_at=TWO_DAYS_AGO_TS, updated_at=YESTERDAY_TS),
            make_candidate(2, status="closed", created_at=YESTERDAY_TS, updated_at=TODAY_TS),
        ]

        kept = filter_by_time_range(candidates, "yesterday", "closed", NOW.date())

        assert [c.metadata["id"] for c in kept] == ["1"]

    @pytest.mark.parametrize("time_range", ["week", "month", "year"])
    def test_wider_ranges_reject_everything(self, time_range):
        candidates = [make_candidate(1, created_at=TODAY_TS)]

        assert filter_by_time_range(candidates, time_range, None, NOW.date()) == []

    def test_unparseable_dates_are_dropped(self):
        candidates = [make_candidate(1, created_at="not a date")]

        assert filter_by_time_range(candidates, "day", None, NOW.date()) == []

    @pytest.mark.asyncio
    async def test_week_produces_empty_sentence(self, processor):
        response = await processor.process([make_candidate(1)], intent("list", timeRange="week"))

        assert response.text == "No tickets were created this week."


class TestStatusAndPriority:
    """Test status/priority filters and priority sort"""

    def test_sort_by_priority_is_stable(self):
        candidates = [
            make_candidate(1, priority="low"),
            make_candidate(2, priority="urgent"),
            make_candidate(3, priority="medium"),
            make_candidate(4, priority="high"),
            make_candidate(5, priority="urgent"),
            make_candidate(6, priority="someday"),
        ]

        ordered = sort_by_priority(candidates)

        assert [c.metadata["id"] for c in ordered] == ["2", "5", "4", "3", "1", "6"]

    @pytest.mark.asyncio
    async def test_status_filter_is_case_insensitive(self, processor):
        candidates = [make_candidate(1, status="Open"), make_candidate(2, status="pending")]

        response = await processor.process(candidates, intent("list", status="OPEN"))

        assert response.text.startswith("1 ticket is OPEN:")
        assert ids_in(response.text) == ["1"]

    @pytest.mark.asyncio
    async def test_priority_filter(self, processor):
        candidates = [
            make_candidate(1, priority="high"),
            make_candidate(2, priority="low"),
            make_candidate(3, priority="HIGH"),
        ]

        response = await processor.process(candidates, intent("list", priority="high"))

        assert ids_in(response.text) == ["1", "3"]

    @pytest.mark.asyncio
    async def test_list_is_sorted_by_priority(self, processor):
        candidates = [
            make_candidate(1, priority="low"),
            make_candidate(2, priority="urgent"),
            make_candidate(3, priority="high"),
        ]

        response = await processor.process(candidates, intent("list"))

        assert response.text.splitlines()[0] == "3 tickets match your query:"
        assert ids_in(response.text) == ["2", "3", "1"]


class TestAssignmentFilters:
    """Test me / name / team / team-member resolution"""

    @pytest.mark.asyncio
    async def test_me_matches_across_types(self, processor):
        candidates = [
            make_candidate(1, assignee_type="user", assigned_to="42"),
            make_candidate(2, assignee_type="user", assigned_to="43"),
            make_candidate(3),
        ]

        response = await processor.process(candidates, intent("list", assignedTo="me"))

        assert response.text.splitlines()[0] == "1 ticket is assigned to you:"
        assert ids_in(response.text) == ["1"]

    @pytest.mark.asyncio
    async def test_me_without_signed_in_user(self, repository, fixed_clock):
        repository.current_user = None
        processor = ResultProcessor(repository, clock=fixed_clock)
        candidates = [make_candidate(1, assignee_type="user", assigned_to="42")]

        response = await processor.process(candidates, intent("list", assignedTo="me"))

        assert response.text == "No tickets are currently assigned to you."

    @pytest.mark.asyncio
    async def test_me_passes_access_token(self, repository, fixed_clock):
        repository.current_user_id = AsyncMock(return_value="42")
        processor = ResultProcessor(repository, clock=fixed_clock)

        await processor.process([], intent("list", assignedTo="me"), access_token="jwt-123")

        repository.current_user_id.assert_awaited_once_with("jwt-123")

    @pytest.mark.asyncio
    async def test_assigned_to_name(self, processor):
        candidates = [
            make_candidate(1, assignee_type="user", assigned_to="u-7"),
            make_candidate(2, assignee_type="user", assigned_to="42"),
        ]

        response = await processor.process(candidates, intent("list", assignedTo="bob"))

        assert response.text.splitlines()[0] == "1 ticket is assigned to Bob Builder:"
        assert ids_in(response.text) == ["1"]

    @pytest.mark.asyncio
    async def test_unknown_name_is_not_an_error(self, processor):
        candidates = [make_candidate(1, assignee_type="user", assigned_to="42")]

        response = await processor.process(candidates, intent("list", assignedTo="Zed"))

        assert response.text == "No tickets are currently assigned to Zed."

    @pytest.mark.asyncio
    async def test_team_filter_requires_team_assignment(self, processor):
        candidates = [
            make_candidate(1, assignee_type="team", assigned_to="3"),
            make_candidate(2, assignee_type="user", assigned_to="3"),
            make_candidate(3, assignee_type="team", assigned_to="5"),
        ]

        response = await processor.process(candidates, intent("list", assignedToTeam="billing"))

        assert response.text.splitlines()[0] == "1 ticket is assigned to the billing team:"
        assert ids_in(response.text) == ["1"]
        assert "Billing team" in response.text

    @pytest.mark.asyncio
    async def test_team_without_tickets(self, processor):
        candidates = [make_candidate(1, assignee_type="team", assigned_to="3")]

        response = await processor.process(candidates, intent("count", assignedToTeam="approvers"))

        assert response.text == "No tickets are currently assigned to the approvers team."

    @pytest.mark.asyncio
    async def test_unknown_team(self, fixed_clock):
        processor = ResultProcessor(FakeTicketRepository(), clock=fixed_clock)
        candidates = [make_candidate(1, assignee_type="team", assigned_to="3")]

        response = await processor.process(candidates, intent("list", assignedToTeam="approvers"))

        assert response.text == "No tickets are currently assigned to the approvers team."

    @pytest.mark.asyncio
    async def test_team_members(self, processor):
        candidates = [
            make_candidate(1, assignee_type="user", assigned_to="42"),
            make_candidate(2, assignee_type="user", assigned_to="u-7"),
            make_candidate(3, assignee_type="user", assigned_to="99"),
            make_candidate(4, assignee_type="team", assigned_to="5"),
        ]

        response = await processor.process(
            candidates, intent("list", assignedToTeamMembers="approvers")
        )

        assert response.text.splitlines()[0] == (
            "2 tickets are assigned to members of the approvers team:"
        )
        assert ids_in(response.text) == ["1", "2"]

    @pytest.mark.asyncio
    async def test_unknown_team_members(self, processor):
        candidates = [make_candidate(1, assignee_type="user", assigned_to="42")]

        response = await processor.process(
            candidates, intent("list", assignedToTeamMembers="ghosts")
        )

        assert response.text == "No tickets are currently assigned to members of the ghosts team."


class TestRendering:
    """Test ticket lines and sentences"""

    @pytest.mark.asyncio
    async def test_ticket_line_contents(self, processor):
        candidates = [
            make_candidate(1, subject="VPN down", priority="urgent", status="open",
                           assignee_type="user", assigned_to="42", created_at=TODAY_TS),
            make_candidate(2, subject="Printer jam", priority="low", status="closed",
                           created_at=TWO_DAYS_AGO_TS),
        ]

        response = await processor.process(candidates, intent("list"))
        first, second = response.text.splitlines()[1:]

        assert '<a href="/tickets/1"' in first
        assert ">VPN down</a>" in first
        assert "🔴" in first
        assert '<span style="color: #f59e0b">(open)</span>' in first
        assert "Alice Agent" in first
        assert first.endswith("Created today")

        assert "🟢" in second
        assert '<span style="color: #6b7280">(closed)</span>' in second
        assert "Unassigned" in second
        assert second.endswith("Created 10/16/2026")

    @pytest.mark.asyncio
    async def test_unknown_assignee_defaults_to_unassigned(self, processor):
        candidates = [make_candidate(1, assignee_type="user", assigned_to="nobody")]

        response = await processor.process(candidates, intent("list"))

        assert "- Unassigned -" in response.text

    @pytest.mark.asyncio
    async def test_assignee_lookups_fan_out_per_ticket(self, processor, repository):
        candidates = [
            make_candidate(i, assignee_type="user", assigned_to="42") for i in range(1, 6)
        ]

        await processor.process(candidates, intent("list"))

        assert repository.user_lookups == ["42"] * 5

    @pytest.mark.asyncio
    async def test_lookup_failure_propagates(self, repository, fixed_clock):
        repository.get_user_by_id = AsyncMock(side_effect=SourceReadError("timeout"))
        processor = ResultProcessor(repository, clock=fixed_clock)
        candidates = [make_candidate(1, assignee_type="user", assigned_to="42")]

        with pytest.raises(SourceReadError):
            await processor.process(candidates, intent("list"))

    @pytest.mark.asyncio
    async def test_time_and_assignment_header(self, processor):
        candidates = [
            make_candidate(1, created_at=TODAY_TS, assignee_type="user", assigned_to="42"),
            make_candidate(2, created_at=TODAY_TS, assignee_type="user", assigned_to="42"),
        ]

        response = await processor.process(candidates, intent("list", assignedTo="me", timeRange="day"))

        assert response.text.splitlines()[0] == (
            "2 tickets were created today and assigned to you:"
        )

    @pytest.mark.asyncio
    @pytest.mark.parametrize("filters, expected", [
        ({"assignedTo": "me", "timeRange": "day"}, "No tickets created today were assigned to you."),
        ({"assignedTo": "me"}, "No tickets are currently assigned to you."),
        ({"timeRange": "day"}, "No tickets were created today."),
        ({"status": "closed", "timeRange": "yesterday"}, "No tickets were closed yesterday."),
        ({"status": "open", "timeRange": "yesterday"}, "No open tickets were created yesterday."),
        ({"status": "pending"}, "No pending tickets were found."),
        ({"priority": "urgent"}, "No tickets match your query."),
        ({}, "No tickets match your query."),
        (
            {"assignedToTeam": "approvers", "assignedTo": "me"},
            "No tickets are currently assigned to the approvers team."
        ),
        (
            {"assignedToTeamMembers": "billing", "assignedToTeam": "approvers"},
            "No tickets are currently assigned to members of the billing team."
        ),
    ])
    async def test_empty_sentences(self, processor, filters, expected):
        response = await processor.process([], intent("count", **filters))

        assert response.text == expected
        assert response.data is None


class TestAggregation:
    """Test trend and distribution branches"""

    @pytest.mark.asyncio
    async def test_distribution_by_priority(self, processor):
        candidates = [
            make_candidate(1, priority="high"),
            make_candidate(2, priority="high"),
            make_candidate(3, priority="low"),
        ]

        response = await processor.process(
            candidates, intent("distribution", visualization="pie", priority=None)
        )

        counts = {point.name: point.value for point in response.data}
        assert counts == {"high": 2, "low": 1}
        assert response.text == "Here's the distribution of tickets by priority:"
        assert response.visual_type == "pie"

    @pytest.mark.asyncio
    async def test_distribution_priority_value_names_dimension(self, processor):
        candidates = [
            make_candidate(1, priority="high"),
            make_candidate(2, priority="high"),
            make_candidate(3, priority="low"),
        ]

        response = await processor.process(candidates, intent("distribution", priority="high"))

        counts = {point.name: point.value for point in response.data}
        assert counts == {"high": 2, "low": 1}

    @pytest.mark.asyncio
    async def test_distribution_by_status(self, processor):
        candidates = [
            make_candidate(1, status="open"),
            make_candidate(2, status="closed"),
            make_candidate(3, status="open"),
            make_candidate(4, status=""),
        ]

        response = await processor.process(candidates, intent("distribution", visualization="bar"))

        counts = {point.name: point.value for point in response.data}
        assert counts == {"open": 2, "closed": 1, "unknown": 1}
        assert response.visual_type == "bar"

    @pytest.mark.asyncio
    async def test_trend_buckets_are_chronological(self, processor):
        candidates = [
            make_candidate(1, created_at=TODAY_TS),
            make_candidate(2, created_at=TWO_DAYS_AGO_TS),
            make_candidate(3, created_at=YESTERDAY_TS),
            make_candidate(4, created_at="2026-10-17T08:00:00"),
        ]

        response = await processor.process(candidates, intent("trend", visualization="line"))

        assert [(p.name, p.value) for p in response.data] == [
            ("10/16/2026", 1),
            ("yesterday", 2),
            ("today", 1),
        ]
        assert response.text == "Here's the trend of tickets over time:"
        assert response.visual_type == "line"

    @pytest.mark.asyncio
    async def test_trend_without_tickets(self, processor):
        response = await processor.process([make_comment_candidate(1, 1)], intent("trend"))

        assert response.data is None
        assert response.text == "No tickets match your query."

    @pytest.mark.asyncio
    async def test_visual_type_none(self, processor):
        response = await processor.process([make_candidate(1)], intent("list", visualization="none"))

        assert response.visual_type is None
        assert response.data is None


class TestClosedYesterdayScenario:
    """End-to-end: 'How many tickets were closed yesterday?'"""

    @pytest.mark.asyncio
    async def test_one_ticket_closed_yesterday(self, processor):
        parsed = QueryIntent.model_validate({
            "queryType": "count",
            "filters": {"status": "closed", "timeRange": "yesterday"}
        })
        candidates = [
            make_candidate(101, subject="Refund issued", status="closed",
                           created_at=TWO_DAYS_AGO_TS, updated_at=YESTERDAY_TS),
            make_candidate(102, subject="Still broken", status="open", created_at=YESTERDAY_TS),
        ]

        response = await processor.process(candidates, parsed)

        assert "1 ticket was closed yesterday:" in response.text
        assert '<a href="/tickets/101"' in response.text
        assert "/tickets/102" not in response.text
        assert response.data is None
        assert response.visual_type is None
