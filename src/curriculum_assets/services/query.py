"""Read-side listing and filtering built on the asset store."""

from typing import Optional

from curriculum_assets.logging_config import logger
from curriculum_assets.schemas import Asset, AssetListResult, FilteredAssetResult
from curriculum_assets.services.asset_store import AssetStore


class QueryService:
    """Wraps store reads into result envelopes with counts."""

    def __init__(self, store: AssetStore):
        self.store = store

    async def list_assets(
        self,
        sort_by: Optional[str] = None,
        descending: bool = False,
    ) -> AssetListResult:
        assets = await self.store.list(sort_by=sort_by, descending=descending)
        logger.info(f"Retrieved {len(assets)} assets")
        return AssetListResult(assets=assets, total_count=len(assets))

    async def filter_assets(
        self,
        curriculum: Optional[str] = None,
        month: Optional[str] = None,
        book_id: Optional[str] = None,
        sort_by: Optional[str] = None,
        descending: bool = False,
    ) -> FilteredAssetResult:
        """Filter assets; the applied predicates are echoed back in the result."""
        assets = await self.store.filter(
            curriculum=curriculum,
            month=month,
            book_id=book_id,
            sort_by=sort_by,
            descending=descending,
        )
        logger.info(
            f"Found {len(assets)} assets for curriculum={curriculum}, "
            f"month={month}, book_id={book_id}"
        )
        return FilteredAssetResult(
            curriculum=curriculum,
            month=month,
            book_id=book_id,
            assets=assets,
            total_found=len(assets),
        )

    async def get_asset(self, asset_id: str) -> Asset:
        return await self.store.get(asset_id)
