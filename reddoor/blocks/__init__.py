"""Block list service."""

from reddoor.blocks.service import BlockRecord, BlockService

__all__ = ["BlockRecord", "BlockService"]
