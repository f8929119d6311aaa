"""
Dependency injection setup for FastAPI.

This module provides the "container" that wires together all module
implementations. Each module exposes its service through an interface,
and this file creates the concrete implementations.

Storage is Supabase by default. With USE_IN_MEMORY_STORE set, every
repository and the quota ledger are in-process (local development, tests).
"""

from typing import TYPE_CHECKING, Any, Optional

from shared.config import Settings, get_settings

# Type checking imports for interfaces (avoids circular imports)
if TYPE_CHECKING:
    from modules.auth.interfaces import IAuthService
    from modules.entitlements.interfaces import IEntitlementService, IPrincipalRepository
    from modules.usage.interfaces import IQuotaLedger
    from modules.documents.interfaces import IDocumentRepository, IDocumentService
    from modules.documents.catalog import DocumentTypeCatalog
    from modules.reports.interfaces import IReportRepository, IReportService
    from modules.analysis.interfaces import IAnalysisService
    from providers.base import DocumentLLM


class ServiceContainer:
    """
    Container for all service instances.

    This class manages the lifecycle of service instances and their
    dependencies. Services are created lazily on first access.

    All services are cached as singletons within the container.
    Use reset() to clear all cached services for testing.
    """

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self._settings = settings
        self._db: Any = None
        self._auth_service: "IAuthService | None" = None
        self._principal_repository: "IPrincipalRepository | None" = None
        self._entitlement_service: "IEntitlementService | None" = None
        self._quota_ledger: "IQuotaLedger | None" = None
        self._document_repository: "IDocumentRepository | None" = None
        self._document_service: "IDocumentService | None" = None
        self._document_catalog: "DocumentTypeCatalog | None" = None
        self._report_repository: "IReportRepository | None" = None
        self._report_service: "IReportService | None" = None
        self._llm: "DocumentLLM | None" = None
        self._analysis_service: "IAnalysisService | None" = None

    @property
    def settings(self) -> Settings:
        if self._settings is None:
            self._settings = get_settings()
        return self._settings

    @property
    def in_memory(self) -> bool:
        return self.settings.use_in_memory_store

    @property
    def db(self) -> Any:
        """Supabase client (service role)."""
        if self._db is None:
            from shared.database import get_supabase_client
            self._db = get_supabase_client()
        return self._db

    @property
    def auth(self) -> "IAuthService":
        """Get the auth service instance."""
        if self._auth_service is None:
            from modules.auth.service import AuthService
            self._auth_service = AuthService(self.settings)
        return self._auth_service

    @property
    def principal_repository(self) -> "IPrincipalRepository":
        if self._principal_repository is None:
            from modules.entitlements.repository import (
                InMemoryPrincipalRepository,
                SupabasePrincipalRepository,
            )
            if self.in_memory:
                self._principal_repository = InMemoryPrincipalRepository()
            else:
                self._principal_repository = SupabasePrincipalRepository(self.db)
        return self._principal_repository

    @property
    def entitlements(self) -> "IEntitlementService":
        """Get the entitlement service instance."""
        if self._entitlement_service is None:
            from modules.entitlements.service import EntitlementService
            self._entitlement_service = EntitlementService(
                auth=self.auth,
                principals=self.principal_repository,
                settings=self.settings,
            )
        return self._entitlement_service

    @property
    def ledger(self) -> "IQuotaLedger":
        """Get the quota ledger instance."""
        if self._quota_ledger is None:
            from modules.usage.service import QuotaLedger, SupabaseQuotaLedger
            if self.in_memory:
                self._quota_ledger = QuotaLedger(self.settings)
            else:
                self._quota_ledger = SupabaseQuotaLedger(self.db, self.settings)
        return self._quota_ledger

    @property
    def document_repository(self) -> "IDocumentRepository":
        if self._document_repository is None:
            from modules.documents.repository import (
                DocumentRepository,
                InMemoryDocumentRepository,
            )
            if self.in_memory:
                self._document_repository = InMemoryDocumentRepository()
            else:
                self._document_repository = DocumentRepository(self.db)
        return self._document_repository

    @property
    def catalog(self) -> "DocumentTypeCatalog":
        if self._document_catalog is None:
            from modules.documents.catalog import DocumentTypeCatalog
            self._document_catalog = DocumentTypeCatalog(self.settings)
        return self._document_catalog

    @property
    def report_repository(self) -> "IReportRepository":
        if self._report_repository is None:
            from modules.reports.repository import InMemoryReportRepository, ReportRepository
            if self.in_memory:
                self._report_repository = InMemoryReportRepository()
            else:
                self._report_repository = ReportRepository(self.db)
        return self._report_repository

    @property
    def reports(self) -> "IReportService":
        """Get the report service instance."""
        if self._report_service is None:
            from modules.reports.service import ReportService
            self._report_service = ReportService(self.report_repository)
        return self._report_service

    @property
    def documents(self) -> "IDocumentService":
        """Get the document service instance."""
        if self._document_service is None:
            from modules.documents.service import DocumentService
            self._document_service = DocumentService(
                entitlements=self.entitlements,
                repository=self.document_repository,
                reports=self.reports,
                settings=self.settings,
            )
        return self._document_service

    @property
    def llm(self) -> "DocumentLLM":
        """Get the document LLM instance."""
        if self._llm is None:
            from providers.gemini import GeminiProvider
            self._llm = GeminiProvider.from_settings(self.settings)
        return self._llm

    @property
    def analysis(self) -> "IAnalysisService":
        """Get the analysis service instance."""
        if self._analysis_service is None:
            from modules.analysis.service import AnalysisService
            self._analysis_service = AnalysisService(
                entitlements=self.entitlements,
                ledger=self.ledger,
                documents=self.document_repository,
                llm=self.llm,
                reports=self.reports,
                catalog=self.catalog,
                settings=self.settings,
            )
        return self._analysis_service

    def reset(self) -> None:
        """
        Reset all cached services.

        This is primarily for testing - allows tests to get fresh
        service instances with different mock dependencies.
        """
        self.__init__(self._settings)


# Module-level container singleton
_container: ServiceContainer | None = None


def get_container() -> ServiceContainer:
    """Get the singleton service container."""
    global _container
    if _container is None:
        _container = ServiceContainer()
    return _container


def set_container(container: ServiceContainer) -> None:
    """Install a pre-built container (tests)."""
    global _container
    _container = container


def reset_container() -> None:
    """
    Reset the service container.

    This clears the cached container, so the next call to get_container()
    will create a fresh container with new service instances.

    Primarily used for testing.
    """
    global _container
    _container = None


# FastAPI dependency functions
# These are the functions that should be used in route Depends() calls


def get_auth_service() -> "IAuthService":
    """FastAPI dependency for auth service."""
    return get_container().auth


def get_entitlement_service() -> "IEntitlementService":
    """FastAPI dependency for entitlement service."""
    return get_container().entitlements


def get_quota_ledger() -> "IQuotaLedger":
    """FastAPI dependency for the quota ledger."""
    return get_container().ledger


def get_document_service() -> "IDocumentService":
    """FastAPI dependency for document service."""
    return get_container().documents


def get_report_service() -> "IReportService":
    """FastAPI dependency for report service."""
    return get_container().reports


def get_analysis_service() -> "IAnalysisService":
    """FastAPI dependency for analysis service."""
    return get_container().analysis
