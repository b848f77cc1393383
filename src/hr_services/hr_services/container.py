from __future__ import annotations

from dataclasses import dataclass

from .database.connection import DBConfig, DatabaseConnection
from .designations.mysql_designation_repository import MySQLDesignationRepository
from .designations.repository import DesignationRepository
from .promotions.bulk import BulkImportService
from .promotions.mysql_chain_store import MySQLChainStore
from .promotions.query import PromotionQueryService
from .promotions.repository import ChainStore
from .promotions.service import PromotionChainService


@dataclass(frozen=True)
class Container:
    designations_repo: DesignationRepository
    chain_store: ChainStore

    promotion_service: PromotionChainService
    bulk_import_service: BulkImportService
    promotion_query_service: PromotionQueryService


def build_services(*, designations_repo: DesignationRepository, chain_store: ChainStore) -> Container:
    promotion_service = PromotionChainService(chain_store, designations_repo)
    return Container(
        designations_repo=designations_repo,
        chain_store=chain_store,
        promotion_service=promotion_service,
        bulk_import_service=BulkImportService(chain_store, designations_repo, promotion_service),
        promotion_query_service=PromotionQueryService(chain_store),
    )


def build_container(*, db_config: dict) -> Container:
    conn = DatabaseConnection(DBConfig.from_mapping(db_config))
    return build_services(
        designations_repo=MySQLDesignationRepository(conn),
        chain_store=MySQLChainStore(conn),
    )
