"""
Proposal tally endpoints (read-only).
"""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from db.session import get_db
from models.proposal import OptionRole, ProposalType
from repositories.governance_repository import GovernanceRepository
from schemas.proposal import ProposalOptionResultResponse, ProposalResultResponse

router = APIRouter()


@router.get("/{proposal_hash}/result", response_model=ProposalResultResponse)
async def get_proposal_result(
    proposal_hash: str,
    db: AsyncSession = Depends(get_db),
) -> ProposalResultResponse:
    """Current tally of a proposal."""
    repository = GovernanceRepository(db)

    proposal = await repository.find_proposal_by_hash(proposal_hash)
    if proposal is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Proposal not found")

    result = await repository.find_current_result(proposal.hash)
    if result is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Proposal has no result yet")

    by_option = {r.proposal_option_id: r for r in result.option_results}
    options = []
    for option in proposal.options:
        option_result = by_option.get(option.id)
        options.append(
            ProposalOptionResultResponse(
                option_id=option.option_id,
                description=option.description,
                role=OptionRole(option.role),
                weight=option_result.weight if option_result else 0,
                voters=option_result.voters if option_result else 0,
            )
        )

    return ProposalResultResponse(
        proposal_hash=proposal.hash,
        subject=proposal.subject,
        type=ProposalType(proposal.type),
        title=proposal.title,
        block=result.block,
        total_voters=sum(o.voters for o in options),
        total_weight=sum(o.weight for o in options),
        options=options,
    )
