"""
Tests for marketplace wire message decoding.
"""

import pytest

from core.exceptions import MalformedMessageError, StructuralError
from models.proposal import OptionRole, ProposalType
from schemas.messages import (
    ProposalMessage,
    ProposalOptionMessage,
    VoteMessage,
    decode_marketplace_message,
)


def _proposal_action(**overrides) -> dict:
    action = {
        "type": "MP_PROPOSAL_ADD",
        "submitter": "pXYZ",
        "category": "ITEM_VOTE",
        "item": "item-42",
        "title": "Remove listing?",
        "description": "",
        "block_start": 100,
        "block_end": 200,
        "options": [
            {"option_id": 0, "description": "REMOVE"},
            {"option_id": 1, "description": "KEEP"},
        ],
    }
    action.update(overrides)
    return action


def _envelope(action: dict) -> dict:
    return {"version": "0.1.0.0", "mpaction": action}


@pytest.mark.unit
class TestDecodeMarketplaceMessage:
    """Envelope and action decoding."""

    def test_decodes_proposal(self) -> None:
        message = decode_marketplace_message(_envelope(_proposal_action()))

        assert isinstance(message, ProposalMessage)
        assert message.category == ProposalType.ITEM_VOTE
        assert [o.resolved_role() for o in message.sorted_options] == [
            OptionRole.REMOVE,
            OptionRole.KEEP,
        ]

    def test_decodes_vote(self) -> None:
        message = decode_marketplace_message(
            _envelope(
                {
                    "type": "MP_VOTE",
                    "proposal_hash": "abc",
                    "option_id": 1,
                    "voter": "pXYZ",
                    "block": 150,
                }
            )
        )

        assert isinstance(message, VoteMessage)
        assert message.option_id == 1
        assert message.option_role is None

    def test_unknown_action_type(self) -> None:
        with pytest.raises(MalformedMessageError, match="Unsupported action type"):
            decode_marketplace_message(_envelope({"type": "MPA_BID"}))

    def test_missing_envelope_fields(self) -> None:
        with pytest.raises(MalformedMessageError):
            decode_marketplace_message({"mpaction": _proposal_action()})

    def test_malformed_errors_are_structural(self) -> None:
        with pytest.raises(StructuralError):
            decode_marketplace_message(_envelope({"type": "MP_VOTE"}))

    @pytest.mark.parametrize(
        "overrides",
        [
            {"block_start": 300},
            {"item": None},
            {"title": ""},
            {"options": [{"option_id": 0, "description": "REMOVE"}, {"option_id": 2, "description": "KEEP"}]},
            {"options": [{"option_id": 0, "description": ""}]},
            {"category": "AUCTION"},
        ],
    )
    def test_invalid_proposals_are_rejected(self, overrides) -> None:
        with pytest.raises(MalformedMessageError):
            decode_marketplace_message(_envelope(_proposal_action(**overrides)))

    def test_vote_requires_a_target(self) -> None:
        with pytest.raises(MalformedMessageError):
            decode_marketplace_message(
                _envelope({"type": "MP_VOTE", "proposal_hash": "abc", "voter": "pXYZ", "block": 1})
            )

    def test_vote_by_role(self) -> None:
        message = decode_marketplace_message(
            _envelope(
                {
                    "type": "MP_VOTE",
                    "proposal_hash": "abc",
                    "option_role": "REMOVE",
                    "voter": "pXYZ",
                    "block": 1,
                }
            )
        )

        assert message.option_role == OptionRole.REMOVE


@pytest.mark.unit
class TestProposalOptionRole:
    """Role markers on proposal options."""

    def test_explicit_role_wins(self) -> None:
        option = ProposalOptionMessage(option_id=0, description="Yes please", role=OptionRole.KEEP)
        assert option.resolved_role() == OptionRole.KEEP

    def test_role_derived_from_description(self) -> None:
        assert ProposalOptionMessage(option_id=0, description=" remove ").resolved_role() == OptionRole.REMOVE
        assert ProposalOptionMessage(option_id=0, description="maybe").resolved_role() == OptionRole.CUSTOM
