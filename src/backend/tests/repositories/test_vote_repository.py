"""
Tests for vote repository.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from core.exceptions import RepositoryUnavailableError
from schemas.vote import VoteCreateRequest


@pytest.fixture
def mock_session():
    """Create a mock database session."""
    session = AsyncMock()
    session.execute = AsyncMock()
    session.commit = AsyncMock()
    session.flush = AsyncMock()
    session.refresh = AsyncMock()
    session.add = MagicMock()
    return session


@pytest.mark.unit
class TestVoteRepository:
    """Test VoteRepository operations."""

    def test_repository_instantiation(self, mock_session) -> None:
        """Test that repository can be instantiated."""
        from repositories.vote_repository import VoteRepository

        repo = VoteRepository(mock_session)
        assert repo.db == mock_session

    async def test_find_current_returns_vote(self, mock_session) -> None:
        """Test getting the voter's current vote."""
        from repositories.vote_repository import VoteRepository

        mock_vote = MagicMock()
        mock_vote.voter = "addr1"
        mock_vote.is_current = True

        mock_result = MagicMock()
        mock_result.scalar_one_or_none = MagicMock(return_value=mock_vote)
        mock_session.execute = AsyncMock(return_value=mock_result)

        repo = VoteRepository(mock_session)
        result = await repo.find_current(1, "addr1")

        assert result == mock_vote

    async def test_find_current_returns_none(self, mock_session) -> None:
        """Test a voter without a current vote."""
        from repositories.vote_repository import VoteRepository

        mock_result = MagicMock()
        mock_result.scalar_one_or_none = MagicMock(return_value=None)
        mock_session.execute = AsyncMock(return_value=mock_result)

        repo = VoteRepository(mock_session)

        assert await repo.find_current(1, "nobody") is None

    async def test_list_current_returns_votes(self, mock_session) -> None:
        from repositories.vote_repository import VoteRepository

        votes = [MagicMock(), MagicMock()]
        mock_result = MagicMock()
        mock_result.scalars.return_value.all.return_value = votes
        mock_session.execute = AsyncMock(return_value=mock_result)

        repo = VoteRepository(mock_session)

        assert await repo.list_current(1) == votes

    async def test_create_stores_current_vote(self, mock_session) -> None:
        """Test that a created vote is current and carries its weight."""
        from repositories.vote_repository import VoteRepository

        repo = VoteRepository(mock_session)

        await repo.create(
            VoteCreateRequest(
                proposal_id=1,
                proposal_option_id=10,
                voter="addr1",
                block=101,
                weight=50,
            )
        )

        mock_session.add.assert_called_once()
        mock_session.flush.assert_awaited_once()

        vote_obj = mock_session.add.call_args[0][0]
        assert vote_obj.is_current is True
        assert vote_obj.weight == 50
        assert vote_obj.block == 101

    async def test_supersede_executes_update(self, mock_session) -> None:
        from repositories.vote_repository import VoteRepository

        repo = VoteRepository(mock_session)
        await repo.supersede(7)

        mock_session.execute.assert_awaited_once()

    async def test_database_error_becomes_transient(self, mock_session) -> None:
        """Test that SQLAlchemy failures surface as RepositoryUnavailableError."""
        from repositories.vote_repository import VoteRepository

        mock_session.execute = AsyncMock(
            side_effect=OperationalError("SELECT 1", {}, Exception("connection lost"))
        )

        repo = VoteRepository(mock_session)

        with pytest.raises(RepositoryUnavailableError):
            await repo.find_current(1, "addr1")
