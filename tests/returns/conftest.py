import pytest


@pytest.fixture(autouse=True)
def _ctx(returns_bed):
    with returns_bed.domain_context():
        yield
