from dependency_injector import containers, providers

from walletapi.config import Settings
from walletapi.services.commission_service import CommissionService
from walletapi.services.ledger_service import LedgerService
from walletapi.services.order_service import OrderService
from walletapi.services.payment_service import PaymentService


class ConfigModule(containers.DeclarativeContainer):
    """Application configuration."""

    config = providers.Singleton(Settings)


class ServiceModule(containers.DeclarativeContainer):
    """Service layer dependencies.

    The request-scoped session is passed when a provider is called:
    ``container.services.payment_service(db=db)``.
    """

    config = providers.DependenciesContainer()

    ledger_service = providers.Factory(LedgerService, settings=config.config)
    payment_service = providers.Factory(PaymentService, settings=config.config)
    commission_service = providers.Factory(CommissionService, settings=config.config)
    order_service = providers.Factory(OrderService, settings=config.config)


class Container(containers.DeclarativeContainer):
    """Application container."""

    config = providers.Container(ConfigModule)
    services = providers.Container(ServiceModule, config=config)
