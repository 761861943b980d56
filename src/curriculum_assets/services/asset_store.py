"""Asset store: keeps the database record and the asset folder in step.

Every write runs as an ordered sequence of steps:

    resolve -> relocate -> write metadata -> persist      (create)
    relocate -> persist -> write metadata                 (update)
    delete record -> remove folder                        (delete)

The database is authoritative. A record is never written before the files it
references exist; file system trouble after the database write is logged as
drift and does not fail the call.
"""

import asyncio
from datetime import timedelta
from pathlib import Path
from typing import Any, Awaitable, Callable, List, Mapping, Optional, Tuple, TypeVar, Union

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from curriculum_assets.config.settings import Settings, get_settings
from curriculum_assets.exceptions import (
    AssetError,
    DatabaseFailure,
    DuplicateAsset,
    FileNotFound,
    IOFailure,
    NotFound,
    ValidationFailure,
)
from curriculum_assets.logging_config import logger
from curriculum_assets.models.asset import AssetRecord, as_utc, new_asset_id, utcnow
from curriculum_assets.schemas import (
    SORTABLE_FIELDS,
    Asset,
    CreateAssetRequest,
    UpdateAssetRequest,
)
from curriculum_assets.services.file_utils import is_within
from curriculum_assets.services.mapping import MappingResolver, get_mapping_resolver
from curriculum_assets.services.metadata import MetadataWriter
from curriculum_assets.services.relocator import CollisionPolicy, FileRelocator
from curriculum_assets.services.staging import StagingArea
from curriculum_assets.services.storage import AssetCategory, StorageService, get_storage_service

T = TypeVar("T")

# (staged source path, None) or (None, existing relative path)
_Placement = Tuple[Optional[Path], Optional[str]]


class AssetStore:
    """Database and file system operations for assets.

    One instance serves one unit of work; it holds the session it was given.
    """

    def __init__(
        self,
        session: AsyncSession,
        resolver: MappingResolver,
        storage: StorageService,
        db_timeout_sec: float = 10.0,
        fs_timeout_sec: float = 30.0,
    ):
        """Initialize the asset store.

        Args:
            session: Async database session
            resolver: Book id mapping resolver
            storage: Asset folder layout
            db_timeout_sec: Upper bound for each database call
            fs_timeout_sec: Upper bound for each file system call
        """
        self.session = session
        self.resolver = resolver
        self.storage = storage
        self.staging = StagingArea(storage)
        self.relocator = FileRelocator(storage)
        self.metadata = MetadataWriter(storage)
        self.db_timeout_sec = db_timeout_sec
        self.fs_timeout_sec = fs_timeout_sec

    async def create(self, request: Union[CreateAssetRequest, Mapping[str, Any]]) -> Asset:
        """Create an asset record and its folder tree.

        Raises:
            ValidationFailure: If the request is malformed
            DuplicateAsset: If the (curriculum, month) pair already exists
            MappingNotFound: If the pair has no book id
            FileNotFound: If a referenced file is missing
            IOFailure: On file system errors or timeouts
            DatabaseFailure: If the insert fails
        """
        if not isinstance(request, CreateAssetRequest):
            request = CreateAssetRequest.parse(request)
        curriculum, month = request.curriculum, request.month

        if curriculum == self.storage.staging_dir_name:
            raise ValidationFailure(f"Curriculum name is reserved: {curriculum}")

        logger.info(f"Creating asset: {curriculum} - {month}")

        existing = await self._db(
            self.session.execute(
                select(AssetRecord.id).where(
                    AssetRecord.curriculum == curriculum,
                    AssetRecord.month == month,
                )
            ),
            "duplicate check",
        )
        if existing.first() is not None:
            raise DuplicateAsset(f"Asset for {curriculum} - {month} already exists")

        book_id = self.resolver.resolve(curriculum, month)

        cover_plan = await self._plan(request.covers, curriculum, month)
        thumbnail_plan = await self._plan(
            [link.thumbnail_file for link in request.youtube_links], curriculum, month
        )
        self._reject_shared_uploads(cover_plan + thumbnail_plan)

        await self._fs(self.storage.create_asset_folders, curriculum, month)
        covers = await self._place_all(
            cover_plan, curriculum, month, AssetCategory.COVER, CollisionPolicy.RENAME
        )
        thumbnails = await self._place_all(
            thumbnail_plan, curriculum, month, AssetCategory.THUMBNAIL, CollisionPolicy.RENAME
        )

        now = utcnow()
        record = AssetRecord(
            id=new_asset_id(),
            curriculum=curriculum,
            month=month,
            book_id=book_id,
            covers=covers,
            subtitles=[s.model_dump() for s in request.subtitles],
            youtube_links=[
                link.model_copy(update={"thumbnail_file": thumbnail}).model_dump()
                for link, thumbnail in zip(request.youtube_links, thumbnails)
            ],
            created_at=now,
            updated_at=now,
        )
        asset = Asset.from_record(record)

        await self._write_metadata(asset)

        self.session.add(record)
        try:
            await self._db(self.session.commit(), "insert asset")
        except IntegrityError as e:
            await self._rollback()
            logger.warning(
                f"drift: insert for {curriculum} - {month} lost a race; "
                f"relocated files left on disk: {covers + thumbnails}"
            )
            await self._restore_metadata(curriculum, month)
            raise DuplicateAsset(f"Asset for {curriculum} - {month} already exists") from e
        except (DatabaseFailure, IOFailure):
            await self._rollback()
            logger.warning(
                f"drift: insert for {curriculum} - {month} failed; "
                f"relocated files left on disk: {covers + thumbnails}"
            )
            raise

        logger.info(f"Created asset {asset.id}: {curriculum} - {month} (book_id={book_id})")
        return asset

    async def get(self, asset_id: str) -> Asset:
        """Fetch one asset.

        Raises:
            NotFound: If no record has ``asset_id``
        """
        return Asset.from_record(await self._get_record(asset_id))

    async def list(self, sort_by: Optional[str] = None, descending: bool = False) -> List[Asset]:
        """Return every asset, oldest first unless ``sort_by`` says otherwise."""
        return await self.filter(sort_by=sort_by, descending=descending)

    async def filter(
        self,
        curriculum: Optional[str] = None,
        month: Optional[str] = None,
        book_id: Optional[str] = None,
        sort_by: Optional[str] = None,
        descending: bool = False,
    ) -> List[Asset]:
        """Return assets matching every supplied field exactly.

        Omitted fields do not constrain the result. Matching is case-sensitive
        even on databases whose default collation is not.

        Raises:
            ValidationFailure: If ``sort_by`` is not a sortable field
        """
        stmt = select(AssetRecord)
        criteria = {"curriculum": curriculum, "month": month, "book_id": book_id}
        for name, value in criteria.items():
            if value is not None:
                stmt = stmt.where(getattr(AssetRecord, name) == value)

        if sort_by is None:
            stmt = stmt.order_by(AssetRecord.created_at.asc(), AssetRecord.id.asc())
        elif sort_by in SORTABLE_FIELDS:
            column = getattr(AssetRecord, sort_by)
            stmt = stmt.order_by(column.desc() if descending else column.asc(), AssetRecord.id.asc())
        else:
            raise ValidationFailure(
                f"Cannot sort by {sort_by!r}; expected one of {', '.join(SORTABLE_FIELDS)}"
            )

        result = await self._db(self.session.execute(stmt), "query assets")
        records = result.scalars().all()
        return [
            Asset.from_record(record)
            for record in records
            if all(value is None or getattr(record, name) == value for name, value in criteria.items())
        ]

    async def update(
        self,
        asset_id: str,
        request: Union[UpdateAssetRequest, Mapping[str, Any]],
    ) -> Asset:
        """Apply a partial update.

        Supplied lists replace the stored ones. Staged uploads are relocated
        and overwrite same-named files; other paths must already exist in the
        asset folder.

        Raises:
            ValidationFailure: If the request is malformed or touches an immutable field
            NotFound: If no record has ``asset_id``
            FileNotFound: If a referenced file is missing
            IOFailure: On file system errors or timeouts
            DatabaseFailure: If the update fails
        """
        if not isinstance(request, UpdateAssetRequest):
            request = UpdateAssetRequest.parse(request)

        record = await self._get_record(asset_id)
        curriculum, month = record.curriculum, record.month
        supplied = request.supplied()

        cover_plan: List[_Placement] = []
        thumbnail_plan: List[_Placement] = []
        if "covers" in supplied:
            cover_plan = await self._plan(request.covers, curriculum, month)
        if "youtube_links" in supplied:
            thumbnail_plan = await self._plan(
                [link.thumbnail_file for link in request.youtube_links], curriculum, month
            )
        self._reject_shared_uploads(cover_plan + thumbnail_plan)

        if any(source is not None for source, _ in cover_plan + thumbnail_plan):
            await self._fs(self.storage.create_asset_folders, curriculum, month)

        covers = await self._place_all(
            cover_plan, curriculum, month, AssetCategory.COVER, CollisionPolicy.OVERWRITE
        )
        thumbnails = await self._place_all(
            thumbnail_plan, curriculum, month, AssetCategory.THUMBNAIL, CollisionPolicy.OVERWRITE
        )

        if "covers" in supplied:
            record.covers = covers
        if "youtube_links" in supplied:
            record.youtube_links = [
                link.model_copy(update={"thumbnail_file": thumbnail}).model_dump()
                for link, thumbnail in zip(request.youtube_links, thumbnails)
            ]
        if "subtitles" in supplied:
            record.subtitles = [s.model_dump() for s in request.subtitles]

        now = utcnow()
        previous = as_utc(record.updated_at)
        if previous is not None and now <= previous:
            now = previous + timedelta(microseconds=1)
        record.updated_at = now

        try:
            await self._db(self.session.commit(), "update asset")
        except (SQLAlchemyError, DatabaseFailure, IOFailure):
            await self._rollback()
            logger.warning(f"drift: update of {asset_id} failed after files were relocated")
            raise

        asset = Asset.from_record(record)
        await self._write_metadata(asset)

        logger.info(f"Updated asset {asset_id}: {curriculum} - {month} ({', '.join(sorted(supplied)) or 'touch'})")
        return asset

    async def delete(self, asset_id: str) -> None:
        """Delete the record, then the asset folder.

        A folder that is already gone or cannot be removed is logged; the
        call still succeeds once the record is deleted.

        Raises:
            NotFound: If no record has ``asset_id``
            DatabaseFailure: If the delete fails
        """
        record = await self._get_record(asset_id)
        curriculum, month = record.curriculum, record.month

        await self._db(self.session.delete(record), "delete asset")
        try:
            await self._db(self.session.commit(), "delete asset")
        except (DatabaseFailure, IOFailure):
            await self._rollback()
            raise

        try:
            await self._fs(self.storage.remove_asset_folder, curriculum, month)
        except IOFailure as e:
            logger.warning(f"drift: asset {asset_id} deleted but folder cleanup failed: {e}")

        logger.info(f"Deleted asset {asset_id}: {curriculum} - {month}")

    async def register_existing(self, curriculum: str, month: str, replace: bool = False) -> Asset:
        """Create a record for an asset folder that already exists on disk.

        The folder's descriptor files supply covers, subtitles and links; the
        files they reference must be present. Nothing on disk is moved.

        Args:
            curriculum: Folder curriculum
            month: Folder month
            replace: Replace an existing record for the pair instead of failing

        Raises:
            DuplicateAsset: If a record exists and ``replace`` is False
            MappingNotFound: If the pair has no book id
            FileNotFound: If ``data.json`` or a referenced file is missing
            IOFailure: If the descriptors cannot be read
        """
        descriptor = await self._fs(self.metadata.read_metadata, curriculum, month)
        book_id = self.resolver.resolve(curriculum, month)

        references = list(descriptor.covers) + [link.thumbnail_file for link in descriptor.youtube_links]
        await self._plan([ref for ref in references if not self.staging.is_staged_reference(ref)], curriculum, month)
        if any(self.staging.is_staged_reference(ref) for ref in references):
            raise ValidationFailure(f"Descriptor for {curriculum} - {month} points into the staging area")

        existing = await self.filter(curriculum=curriculum, month=month)
        if existing and not replace:
            raise DuplicateAsset(f"Asset for {curriculum} - {month} already exists")

        now = utcnow()
        record = AssetRecord(
            id=new_asset_id(),
            curriculum=curriculum,
            month=month,
            book_id=book_id,
            covers=list(descriptor.covers),
            subtitles=[s.model_dump() for s in descriptor.subtitles],
            youtube_links=[link.model_dump() for link in descriptor.youtube_links],
            created_at=now,
            updated_at=now,
        )
        try:
            for asset in existing:
                await self._db(self.session.delete(await self._get_record(asset.id)), "replace asset")
                await self._db(self.session.flush(), "replace asset")
            self.session.add(record)
            await self._db(self.session.commit(), "register asset")
        except IntegrityError as e:
            await self._rollback()
            raise DuplicateAsset(f"Asset for {curriculum} - {month} already exists") from e
        except (DatabaseFailure, IOFailure):
            await self._rollback()
            raise

        logger.info(f"Registered existing folder {curriculum} - {month} as asset {record.id}")
        return Asset.from_record(record)

    async def _get_record(self, asset_id: str) -> AssetRecord:
        result = await self._db(
            self.session.execute(select(AssetRecord).where(AssetRecord.id == asset_id)),
            "fetch asset",
        )
        record = result.scalar_one_or_none()
        if record is None:
            raise NotFound(f"Asset not found: {asset_id}")
        return record

    async def _plan(self, references: List[str], curriculum: str, month: str) -> List[_Placement]:
        """Check every reference before anything moves."""
        return [await self._fs(self._check_reference, ref, curriculum, month) for ref in references]

    def _check_reference(self, reference: str, curriculum: str, month: str) -> _Placement:
        if self.staging.is_staged_reference(reference):
            source = self.staging.path_for(reference)
            if not source.is_file():
                raise FileNotFound(f"Staged file not found: {reference}")
            return source, None

        asset_dir = self.storage.asset_dir(curriculum, month)
        target = self.storage.resolve_relative(curriculum, month, reference)
        if Path(reference).is_absolute() or not is_within(target, asset_dir):
            raise ValidationFailure(f"Path escapes the asset folder: {reference}")
        if not target.is_file():
            raise FileNotFound(f"Asset file not found: {curriculum}/{month}/{reference}")
        return None, reference

    @staticmethod
    def _reject_shared_uploads(plan: List[_Placement]) -> None:
        sources = [source for source, _ in plan if source is not None]
        if len(sources) != len(set(sources)):
            raise ValidationFailure("The same staged upload is referenced more than once")

    async def _place_all(
        self,
        plan: List[_Placement],
        curriculum: str,
        month: str,
        category: AssetCategory,
        policy: CollisionPolicy,
    ) -> List[str]:
        placed: List[str] = []
        for source, existing in plan:
            if source is None:
                placed.append(existing)
                continue
            try:
                placed.append(
                    await self._fs(self.relocator.relocate, source, curriculum, month, category, policy)
                )
            except (FileNotFound, IOFailure) as e:
                if isinstance(e, IOFailure) and e.retryable:
                    # the worker thread keeps running after the timeout
                    logger.warning(
                        f"drift: relocation of {source} into {curriculum}/{month}/{category.value} "
                        f"timed out and may still complete"
                    )
                if placed:
                    logger.warning(
                        f"drift: relocation for {curriculum} - {month} stopped midway; "
                        f"already moved: {placed}"
                    )
                raise
        return placed

    async def _write_metadata(self, asset: Asset) -> None:
        try:
            await self._fs(self.metadata.write_metadata, asset)
        except IOFailure as e:
            logger.warning(f"drift: descriptor files for {asset.curriculum} - {asset.month} are stale: {e}")

    async def _restore_metadata(self, curriculum: str, month: str) -> None:
        """Rewrite descriptor files from the stored record after a lost insert race."""
        try:
            winners = await self.filter(curriculum=curriculum, month=month)
        except AssetError as e:
            logger.warning(f"drift: descriptor files for {curriculum} - {month} are stale: {e}")
            return
        for winner in winners:
            await self._write_metadata(winner)

    async def _db(self, awaitable: Awaitable[T], action: str) -> T:
        try:
            return await asyncio.wait_for(awaitable, timeout=self.db_timeout_sec)
        except asyncio.TimeoutError as e:
            raise IOFailure(
                f"Database call timed out after {self.db_timeout_sec}s: {action}", retryable=True
            ) from e
        except IntegrityError:
            raise
        except SQLAlchemyError as e:
            raise DatabaseFailure(f"Database call failed: {action}: {e}") from e

    async def _fs(self, func: Callable[..., T], *args: Any) -> T:
        try:
            return await asyncio.wait_for(asyncio.to_thread(func, *args), timeout=self.fs_timeout_sec)
        except asyncio.TimeoutError as e:
            raise IOFailure(
                f"File system call timed out after {self.fs_timeout_sec}s: {func.__name__}",
                retryable=True,
            ) from e
        except OSError as e:
            raise IOFailure(f"File system call failed: {func.__name__}: {e}") from e

    async def _rollback(self) -> None:
        try:
            await asyncio.wait_for(self.session.rollback(), timeout=self.db_timeout_sec)
        except (asyncio.TimeoutError, SQLAlchemyError) as e:
            logger.error(f"Rollback failed: {e}")


def get_asset_store(session: AsyncSession, settings: Settings | None = None) -> AssetStore:
    """Factory function to get an asset store bound to ``session``.

    Returns:
        AssetStore configured from settings
    """
    settings = settings or get_settings()
    return AssetStore(
        session=session,
        resolver=get_mapping_resolver(),
        storage=get_storage_service(),
        db_timeout_sec=settings.db_timeout_sec,
        fs_timeout_sec=settings.fs_timeout_sec,
    )
