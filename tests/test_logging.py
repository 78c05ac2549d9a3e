import logging.config

from starlette.requests import Request

from walletapi.core.logging_middleware import request_tags, request_user, tracked_ids
from walletapi.core.security import create_access_token
from walletapi.logging_config import build_logging_config


def make_request(headers=None, path_params=None) -> Request:
    scope = {
        "type": "http",
        "method": "POST",
        "path": "/api/v1/payments/7/approve",
        "query_string": b"",
        "headers": [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()],
    }
    if path_params is not None:
        scope["path_params"] = path_params
    return Request(scope)


class TestRequestTags:
    def test_bearer_subject(self):
        token = create_access_token({"sub": 12, "role": "admin"})

        request = make_request({"Authorization": f"Bearer {token}"})

        assert request_user(request) == "user=12"

    def test_anonymous(self):
        assert request_user(make_request()) == "anonymous"

    def test_bad_token(self):
        request = make_request({"Authorization": "Bearer not-a-jwt"})

        assert request_user(request) == "invalid-token"

    def test_only_money_ids_are_kept(self):
        request = make_request(path_params={"payment_id": 7, "status": "x", "order_id": 3})

        assert tracked_ids(request) == {"payment_id": "7", "order_id": "3"}

    def test_unmatched_route(self):
        assert tracked_ids(make_request()) == {}

    def test_tags_line(self):
        token = create_access_token({"sub": 5, "role": "seller"})
        request = make_request({"Authorization": f"Bearer {token}"}, {"order_id": 9})

        assert request_tags(request) == "user=5 order_id=9"


class TestLoggingConfig:
    def test_service_loggers_only(self):
        config = build_logging_config("debug")

        assert set(config["loggers"]) == {"walletapi", "sqlalchemy.engine"}
        assert config["loggers"]["walletapi"]["level"] == "DEBUG"

    def test_sql_echo(self):
        logging.config.dictConfig(build_logging_config(sql_echo=True))
        assert logging.getLogger("sqlalchemy.engine").level == logging.INFO

        logging.config.dictConfig(build_logging_config(sql_echo=False))
        assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING

    def test_access_log_goes_through_service_logger(self):
        logging.config.dictConfig(build_logging_config("INFO"))

        access = logging.getLogger("walletapi.access")

        assert access.getEffectiveLevel() == logging.INFO
        assert logging.getLogger("walletapi").handlers
