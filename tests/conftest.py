import logging

import pytest

from paillier.paillier_crypto import generate_keypair

TEST_KEY_SIZE = 1024


@pytest.fixture(scope="session")
def keypair():
    return generate_keypair(TEST_KEY_SIZE)


@pytest.fixture(scope="session")
def public_key(keypair):
    return keypair[0]


@pytest.fixture(scope="session")
def private_key(keypair):
    return keypair[1]


@pytest.fixture
def candidates():
    return [23, 38, 52, 65, 77, 94]


@pytest.fixture
def restore_root_logging():
    """Undo handler changes made by setup_logging"""
    root_logger = logging.getLogger()
    handlers = root_logger.handlers[:]
    level = root_logger.level
    yield
    for handler in root_logger.handlers[:]:
        if handler not in handlers:
            root_logger.removeHandler(handler)
            handler.close()
    for handler in handlers:
        if handler not in root_logger.handlers:
            root_logger.addHandler(handler)
    root_logger.setLevel(level)
