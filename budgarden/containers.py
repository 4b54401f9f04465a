from dependency_injector import containers, providers

from budgarden.config import Settings
from budgarden.database.connection import create_db_engine, create_session_factory
from budgarden.services.accrual_service import AccrualService
from budgarden.services.grid_service import GridService
from budgarden.services.payment_service import PaymentService
from budgarden.services.player_service import PlayerService
from budgarden.services.referral_service import ReferralService
from budgarden.services.shop_service import ShopService
from budgarden.utils.timezone_utils import utc_now


class ConfigModule(containers.DeclarativeContainer):
    """Application configuration."""

    config = providers.Singleton(Settings)
    clock = providers.Object(utc_now)


class RepositoryModule(containers.DeclarativeContainer):
    """Database engine and session factory."""

    config = providers.DependenciesContainer()

    engine = providers.Singleton(create_db_engine, settings=config.config)
    session_factory = providers.Singleton(create_session_factory, engine=engine)


class ServiceModule(containers.DeclarativeContainer):
    """Service layer dependencies. db는 요청마다 factory(db=...)로 전달한다."""

    config = providers.DependenciesContainer()

    accrual_service = providers.Factory(
        AccrualService, settings=config.config, clock=config.clock
    )
    shop_service = providers.Factory(
        ShopService, settings=config.config, clock=config.clock
    )
    grid_service = providers.Factory(
        GridService, settings=config.config, clock=config.clock
    )
    referral_service = providers.Factory(
        ReferralService, settings=config.config, clock=config.clock
    )
    player_service = providers.Factory(
        PlayerService, settings=config.config, clock=config.clock
    )
    payment_service = providers.Factory(
        PaymentService, settings=config.config, clock=config.clock
    )


class Container(containers.DeclarativeContainer):
    """Application container."""

    config = providers.Container(ConfigModule)
    repositories = providers.Container(RepositoryModule, config=config)
    services = providers.Container(ServiceModule, config=config)
