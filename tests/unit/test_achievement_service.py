"""
Unit tests for the achievement evaluator.

Tests cover:
- Criteria parsing (known tags, unknown tags, malformed parameters)
- Progress calculation (floor, clamping, unknown criteria)
- Eligibility per criterion kind
- Idempotent grants (already earned, concurrent unique-constraint collision)
- User achievement overview ordering
- Catalog seeding
"""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.exc import IntegrityError

from fretninja.db.models import Achievement, Profile, UserAchievement
from fretninja.enums.quiz import QuizType
from fretninja.models.achievements import (
    PerfectScoreCriterion,
    QuizCountCriterion,
    StreakCriterion,
    TotalQuizzesCriterion,
    parse_criterion,
)
from fretninja.services.practice.achievement_service import (
    DEFAULT_ACHIEVEMENTS,
    AchievementService,
    calculate_progress,
    is_eligible,
    seed_achievements,
)
from fretninja.services.practice.streak import ProfileSnapshot


# =============================================================================
# Test Data Constants
# =============================================================================

USER_ID: str = "user-1"
NOW: datetime = datetime(2026, 3, 15, 12, 0, tzinfo=timezone.utc)


# =============================================================================
# Helper Functions - Mock Object Factories
# =============================================================================


def create_achievement(name: str, criteria: dict, offset: int = 0) -> Achievement:
    """Create a catalog entry."""
    return Achievement(
        id=uuid.uuid4(),
        name=name,
        display_name=name.replace("_", " ").title(),
        description=f"Description of {name}",
        criteria=criteria,
        created_at=NOW + timedelta(seconds=offset),
    )


def create_catalog() -> list[Achievement]:
    """Catalog mirroring the seeded entries."""
    return [
        create_achievement(entry["name"], entry["criteria"], offset=i)
        for i, entry in enumerate(DEFAULT_ACHIEVEMENTS)
    ]


def make_result(scalar: Any = None, scalars: Optional[list] = None) -> MagicMock:
    """Create a mock SQLAlchemy result."""
    result = MagicMock()
    result.scalar_one_or_none.return_value = scalar
    result.scalars.return_value.all.return_value = scalars or []
    return result


def integrity_error() -> IntegrityError:
    return IntegrityError("INSERT INTO user_achievements", {}, Exception("duplicate key"))


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def service(mock_db_session: MagicMock) -> AchievementService:
    return AchievementService(mock_db_session, clock=lambda: NOW)


# =============================================================================
# Criteria Parsing
# =============================================================================


class TestParseCriterion:
    @pytest.mark.parametrize(
        "raw,expected_type",
        [
            pytest.param({"type": "total_quizzes", "count": 10}, TotalQuizzesCriterion, id="total"),
            pytest.param({"type": "perfect_score"}, PerfectScoreCriterion, id="perfect"),
            pytest.param({"type": "streak", "days": 7}, StreakCriterion, id="streak"),
            pytest.param(
                {"type": "quiz_count", "quiz_type": "find_note", "count": 50},
                QuizCountCriterion,
                id="quiz_count",
            ),
        ],
    )
    def test_known_criteria(self, raw, expected_type):
        assert isinstance(parse_criterion(raw), expected_type)

    @pytest.mark.parametrize(
        "raw",
        [
            pytest.param({"type": "speed_demon", "seconds": 30}, id="unknown_tag"),
            pytest.param({"type": "streak"}, id="missing_days"),
            pytest.param({"type": "quiz_count", "quiz_type": "play_song", "count": 5}, id="unknown_quiz_type"),
            pytest.param({"type": "total_quizzes", "count": 0}, id="zero_count"),
            pytest.param({"type": "streak", "days": 0}, id="zero_days"),
            pytest.param({"count": 5}, id="no_tag"),
            pytest.param(None, id="null"),
        ],
    )
    def test_unrecognized_criteria_parse_to_none(self, raw):
        assert parse_criterion(raw) is None

    def test_quiz_count_carries_quiz_type(self):
        criterion = parse_criterion(
            {"type": "quiz_count", "quiz_type": "mark_chord", "count": 50}
        )
        assert criterion.quiz_type == QuizType.MARK_CHORD
        assert criterion.count == 50


# =============================================================================
# Progress
# =============================================================================


class TestCalculateProgress:
    def test_floors_percentage(self):
        progress = calculate_progress(
            TotalQuizzesCriterion(count=3), ProfileSnapshot(find_note_count=1)
        )
        assert (progress.current, progress.target, progress.percentage) == (1, 3, 33)

    @pytest.mark.parametrize(
        "criterion,snapshot,expected",
        [
            pytest.param(
                QuizCountCriterion(quiz_type=QuizType.FIND_NOTE, count=50),
                ProfileSnapshot(find_note_count=29),
                58,
                id="29_of_50",
            ),
            pytest.param(
                TotalQuizzesCriterion(count=100),
                ProfileSnapshot(find_note_count=29),
                29,
                id="29_of_100",
            ),
            pytest.param(
                StreakCriterion(days=7),
                ProfileSnapshot(current_streak=7),
                100,
                id="exactly_reached",
            ),
        ],
    )
    def test_floor_is_exact(self, criterion, snapshot, expected):
        assert calculate_progress(criterion, snapshot).percentage == expected

    def test_total_quizzes_sums_all_modes(self):
        snapshot = ProfileSnapshot(
            find_note_count=1,
            name_note_count=2,
            mark_chord_count=3,
            recognize_interval_count=4,
        )
        progress = calculate_progress(TotalQuizzesCriterion(count=20), snapshot)
        assert progress.current == 10
        assert progress.percentage == 50

    def test_caps_at_100(self):
        progress = calculate_progress(
            StreakCriterion(days=7), ProfileSnapshot(current_streak=30)
        )
        assert progress.percentage == 100
        assert progress.current == 30

    def test_quiz_count_uses_named_counter(self):
        snapshot = ProfileSnapshot(find_note_count=25, mark_chord_count=49)
        progress = calculate_progress(
            QuizCountCriterion(quiz_type=QuizType.MARK_CHORD, count=50), snapshot
        )
        assert (progress.current, progress.target, progress.percentage) == (49, 50, 98)

    def test_perfect_score_is_zero_of_one(self):
        progress = calculate_progress(PerfectScoreCriterion(), ProfileSnapshot())
        assert (progress.current, progress.target, progress.percentage) == (0, 1, 0)

    def test_unknown_criterion(self):
        progress = calculate_progress(None, ProfileSnapshot(current_streak=99))
        assert (progress.current, progress.target, progress.percentage) == (0, 1, 0)

    @pytest.mark.parametrize("streak", [0, 1, 3, 6, 7, 8, 1000])
    def test_percentage_in_range(self, streak):
        progress = calculate_progress(
            StreakCriterion(days=7), ProfileSnapshot(current_streak=streak)
        )
        assert 0 <= progress.percentage <= 100


# =============================================================================
# Eligibility
# =============================================================================


class TestIsEligible:
    @pytest.mark.parametrize(
        "score,expected",
        [
            pytest.param(10, True, id="perfect"),
            pytest.param(9, False, id="nine"),
            pytest.param(None, False, id="no_score"),
        ],
    )
    def test_perfect_score(self, score, expected):
        assert is_eligible(PerfectScoreCriterion(), ProfileSnapshot(), score) is expected

    def test_streak_threshold(self):
        criterion = StreakCriterion(days=7)
        assert not is_eligible(criterion, ProfileSnapshot(current_streak=6), 5)
        assert is_eligible(criterion, ProfileSnapshot(current_streak=7), 5)

    def test_total_quizzes_threshold(self):
        criterion = TotalQuizzesCriterion(count=1)
        assert not is_eligible(criterion, ProfileSnapshot(), 0)
        assert is_eligible(criterion, ProfileSnapshot(name_note_count=1), 0)

    def test_quiz_count_ignores_other_modes(self):
        criterion = QuizCountCriterion(quiz_type=QuizType.FIND_NOTE, count=50)
        assert not is_eligible(criterion, ProfileSnapshot(mark_chord_count=50), 0)
        assert is_eligible(criterion, ProfileSnapshot(find_note_count=50), 0)

    def test_unknown_criterion_never_qualifies(self):
        assert not is_eligible(None, ProfileSnapshot(current_streak=100), 10)


# =============================================================================
# Grants
# =============================================================================


class TestEvaluateAndGrant:
    @pytest.mark.asyncio
    async def test_grants_first_steps_and_perfect_round(
        self, service: AchievementService, mock_db_session: MagicMock
    ):
        catalog = create_catalog()
        mock_db_session.execute = AsyncMock(
            side_effect=[make_result(scalars=catalog), make_result(scalars=[])]
        )

        earned = await service.evaluate_and_grant(
            USER_ID,
            ProfileSnapshot(current_streak=1, longest_streak=1, find_note_count=1),
            QuizType.FIND_NOTE,
            10,
        )

        assert [a.name for a in earned] == ["first_steps", "perfect_round"]
        added = [call.args[0] for call in mock_db_session.add.call_args_list]
        assert all(isinstance(row, UserAchievement) for row in added)
        assert {row.achievement_id for row in added} == {catalog[0].id, catalog[1].id}
        assert all(row.earned_at == NOW for row in added)
        mock_db_session.commit.assert_not_called()

    @pytest.mark.asyncio
    async def test_skips_already_earned(
        self, service: AchievementService, mock_db_session: MagicMock
    ):
        catalog = create_catalog()
        mock_db_session.execute = AsyncMock(
            side_effect=[
                make_result(scalars=catalog),
                make_result(scalars=[catalog[0].id, catalog[1].id]),
            ]
        )

        earned = await service.evaluate_and_grant(
            USER_ID, ProfileSnapshot(find_note_count=2), QuizType.FIND_NOTE, 10
        )

        assert earned == []
        mock_db_session.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_concurrent_grant_is_not_reported(
        self, service: AchievementService, mock_db_session: MagicMock
    ):
        """A unique-constraint collision means another request granted it first."""
        catalog = create_catalog()
        mock_db_session.execute = AsyncMock(
            side_effect=[make_result(scalars=catalog), make_result(scalars=[])]
        )
        mock_db_session.flush = AsyncMock(side_effect=[integrity_error(), None])

        earned = await service.evaluate_and_grant(
            USER_ID, ProfileSnapshot(find_note_count=1), QuizType.FIND_NOTE, 10
        )

        assert [a.name for a in earned] == ["perfect_round"]
        assert mock_db_session.begin_nested.call_count == 2

    @pytest.mark.asyncio
    async def test_unknown_criteria_never_granted(
        self, service: AchievementService, mock_db_session: MagicMock
    ):
        catalog = [create_achievement("mystery", {"type": "midnight_practice"})]
        mock_db_session.execute = AsyncMock(
            side_effect=[make_result(scalars=catalog), make_result(scalars=[])]
        )

        earned = await service.evaluate_and_grant(
            USER_ID, ProfileSnapshot(find_note_count=100), QuizType.FIND_NOTE, 10
        )

        assert earned == []

    @pytest.mark.asyncio
    async def test_second_evaluation_grants_nothing(
        self, service: AchievementService, mock_db_session: MagicMock
    ):
        catalog = create_catalog()
        snapshot = ProfileSnapshot(current_streak=7, longest_streak=7, find_note_count=50)

        mock_db_session.execute = AsyncMock(
            side_effect=[make_result(scalars=catalog), make_result(scalars=[])]
        )
        first = await service.evaluate_and_grant(USER_ID, snapshot, QuizType.FIND_NOTE, 10)

        mock_db_session.execute = AsyncMock(
            side_effect=[
                make_result(scalars=catalog),
                make_result(scalars=[a.id for a in first]),
            ]
        )
        second = await service.evaluate_and_grant(USER_ID, snapshot, QuizType.FIND_NOTE, 10)

        assert {a.name for a in first} == {
            "first_steps",
            "perfect_round",
            "week_warrior",
            "string_master",
        }
        assert second == []


# =============================================================================
# Reads
# =============================================================================


class TestUserAchievements:
    @pytest.mark.asyncio
    async def test_earned_and_progress(
        self, service: AchievementService, mock_db_session: MagicMock
    ):
        catalog = create_catalog()
        first_steps = UserAchievement(
            id=uuid.uuid4(),
            user_id=USER_ID,
            achievement_id=catalog[0].id,
            earned_at=NOW,
        )
        first_steps.achievement = catalog[0]
        profile = Profile(
            id=USER_ID,
            current_streak=3,
            longest_streak=3,
            find_note_count=40,
            name_note_count=0,
            mark_chord_count=5,
            recognize_interval_count=0,
        )
        mock_db_session.execute = AsyncMock(
            side_effect=[
                make_result(scalars=[first_steps]),
                make_result(scalar=profile),
                make_result(scalars=catalog),
            ]
        )

        overview = await service.get_user_achievements(USER_ID)

        assert [a.name for a in overview.earned] == ["first_steps"]
        assert [(p.name, p.percentage) for p in overview.progress] == [
            ("string_master", 80),
            ("week_warrior", 42),
            ("chord_ninja", 10),
            ("perfect_round", 0),
        ]

    @pytest.mark.asyncio
    async def test_without_profile(
        self, service: AchievementService, mock_db_session: MagicMock
    ):
        mock_db_session.execute = AsyncMock(
            side_effect=[
                make_result(scalars=[]),
                make_result(scalar=None),
                make_result(scalars=create_catalog()),
            ]
        )

        overview = await service.get_user_achievements(USER_ID)

        assert overview.earned == []
        assert len(overview.progress) == len(DEFAULT_ACHIEVEMENTS)
        assert all(p.percentage == 0 for p in overview.progress)

    @pytest.mark.asyncio
    async def test_list_achievements(
        self, service: AchievementService, mock_db_session: MagicMock
    ):
        mock_db_session.execute = AsyncMock(
            return_value=make_result(scalars=create_catalog())
        )

        catalog = await service.list_achievements()

        assert [a.name for a in catalog.data] == [e["name"] for e in DEFAULT_ACHIEVEMENTS]


# =============================================================================
# Seeding
# =============================================================================


class TestSeedAchievements:
    @pytest.mark.asyncio
    async def test_inserts_missing_only(self, mock_db_session: MagicMock):
        mock_db_session.execute = AsyncMock(
            return_value=make_result(scalars=["first_steps", "perfect_round"])
        )

        inserted = await seed_achievements(mock_db_session)

        assert inserted == 3
        names = [call.args[0].name for call in mock_db_session.add.call_args_list]
        assert names == ["week_warrior", "string_master", "chord_ninja"]
        mock_db_session.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_noop_when_seeded(self, mock_db_session: MagicMock):
        mock_db_session.execute = AsyncMock(
            return_value=make_result(scalars=[e["name"] for e in DEFAULT_ACHIEVEMENTS])
        )

        assert await seed_achievements(mock_db_session) == 0
        mock_db_session.add.assert_not_called()
        mock_db_session.commit.assert_not_called()
