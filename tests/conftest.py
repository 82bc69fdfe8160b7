import pytest


class FakeBackend:
    """Records invocations and answers from a per-operation table.

    A response may be a value, an exception instance to raise, or a callable
    receiving the call's params.
    """

    def __init__(self, responses=None):
        self.responses = dict(responses or {})
        self.calls = []

    async def invoke(self, operation, **params):
        self.calls.append((operation, params))
        response = self.responses.get(operation)
        if callable(response):
            response = response(**params)
        if isinstance(response, Exception):
            raise response
        return response

    def operations(self):
        return [operation for operation, _params in self.calls]


class FakeStore:
    def __init__(self, initial=None, fail_on_save=False):
        self.saved = []
        self.initial = list(initial or [])
        self.fail_on_save = fail_on_save

    def load(self):
        return list(self.initial)

    def save(self, connections):
        if self.fail_on_save:
            raise OSError("disk full")
        self.saved.append(list(connections))


@pytest.fixture
def fake_backend():
    return FakeBackend()


@pytest.fixture
def fake_store():
    return FakeStore()


@pytest.fixture
def make_store():
    return FakeStore
