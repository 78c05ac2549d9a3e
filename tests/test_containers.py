from walletapi.containers import Container, ServiceModule
from walletapi.services.order_service import OrderService
from walletapi.services.payment_service import PaymentService


class TestContainer:
    def test_services_take_the_request_session(self, db_session):
        container = Container()

        payment_service = container.services.payment_service(db=db_session)
        order_service = container.services.order_service(db=db_session)

        assert isinstance(payment_service, PaymentService)
        assert isinstance(order_service, OrderService)
        assert payment_service.db is db_session
        assert payment_service.settings is order_service.settings

    def test_only_session_scoped_services_are_wired(self):
        assert set(ServiceModule.providers) == {
            "config",
            "ledger_service",
            "payment_service",
            "commission_service",
            "order_service",
        }
