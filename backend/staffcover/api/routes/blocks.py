from fastapi import APIRouter, Depends

from staffcover.api.deps import get_actor_id, get_engine
from staffcover.schemas.block import CombinedBlockIn, CombinedBlockOut
from staffcover.services.engine import SubstitutionEngine
from staffcover.services.records import BlockAllocation, JointBlock

router = APIRouter()


@router.put("/combined-blocks", response_model=list[CombinedBlockOut])
def import_combined_blocks(
    payload: list[CombinedBlockIn],
    engine: SubstitutionEngine = Depends(get_engine),
    actor_id: str | None = Depends(get_actor_id),
) -> list[CombinedBlockOut]:
    blocks = [
        JointBlock(
            id=item.id,
            name=item.name,
            section_names=tuple(item.section_names),
            allocations=tuple(BlockAllocation(**allocation.model_dump()) for allocation in item.allocations),
        )
        for item in payload
    ]
    engine.import_blocks(blocks, actor_id=actor_id)
    return blocks
