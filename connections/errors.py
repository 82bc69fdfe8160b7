class AdapterError(RuntimeError):
    pass


class InvalidConfiguration(AdapterError):
    """Descriptor is missing fields its engine requires."""


class MalformedQuery(AdapterError):
    """Document query text does not parse into {db, collection, operation, filter}."""
