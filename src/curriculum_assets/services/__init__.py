# Asset services layer
# Business logic that orchestrates database queries and filesystem operations

from curriculum_assets.services.asset_store import AssetStore, get_asset_store
from curriculum_assets.services.mapping import MappingResolver, get_mapping_resolver, month_slot
from curriculum_assets.services.metadata import AssetDescriptor, MetadataWriter
from curriculum_assets.services.migration import AssetMigrator, DriftReport, MigrationReport
from curriculum_assets.services.query import QueryService
from curriculum_assets.services.relocator import CollisionPolicy, FileRelocator
from curriculum_assets.services.staging import StagedFile, StagingArea
from curriculum_assets.services.storage import AssetCategory, StorageService, get_storage_service

__all__ = [
    # asset_store.py
    "AssetStore",
    "get_asset_store",
    # mapping.py
    "MappingResolver",
    "get_mapping_resolver",
    "month_slot",
    # metadata.py
    "AssetDescriptor",
    "MetadataWriter",
    # migration.py
    "AssetMigrator",
    "DriftReport",
    "MigrationReport",
    # query.py
    "QueryService",
    # relocator.py
    "CollisionPolicy",
    "FileRelocator",
    # staging.py
    "StagedFile",
    "StagingArea",
    # storage.py
    "AssetCategory",
    "StorageService",
    "get_storage_service",
]
