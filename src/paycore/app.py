import logging

from flask import Flask

from paycore.adapters import InMemorySink, LoggingNotifier
from paycore.api.routes import api
from paycore.config import Config
from paycore.core.ledger import Ledger
from paycore.services.catalog import default_registry
from paycore.services.payment_processor import PaymentProcessor, PaymentProcessorConfig


def create_app(config=Config, processor=None, sink=None, notifier=None, rate_provider=None):
    app = Flask(__name__)
    app.config.from_object(config)

    if config.DEBUG:
        logging.basicConfig(level=logging.DEBUG)

    if processor is None:
        processor = PaymentProcessor(
            default_registry(config, rate_provider=rate_provider),
            Ledger(),
            PaymentProcessorConfig(record_failed_attempts=config.RECORD_FAILED_ATTEMPTS),
        )

    app.extensions["paycore"] = {
        "processor": processor,
        "sink": sink if sink is not None else InMemorySink(),
        "notifier": notifier if notifier is not None else LoggingNotifier(),
    }
    app.register_blueprint(api)

    return app


if __name__ == "__main__":
    app = create_app()
    app.run(debug=Config.DEBUG)
