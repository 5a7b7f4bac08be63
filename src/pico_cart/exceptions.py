class PicoCartError(Exception):
    pass

class UninitializedContext(PicoCartError):
    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(f"'{operation}' used outside an open CartStore. Call 'await store.open()' first.")

class CorruptPersistedState(PicoCartError):
    def __init__(self, key: str, reason: str):
        self.key = key
        self.reason = reason
        super().__init__(f"Persisted cart under {key!r} could not be decoded: {reason}")

class PersistenceReadFailure(PicoCartError):
    def __init__(self, key: str):
        self.key = key
        super().__init__(f"Could not read persisted cart under {key!r}")

class PersistenceWriteFailure(PicoCartError):
    def __init__(self, key: str):
        self.key = key
        super().__init__(f"Could not write persisted cart under {key!r}")

class InvalidStorageBackendError(PicoCartError):
    def __init__(self, backend: str):
        self.backend = backend
        super().__init__(f"Unknown cart storage backend: {backend!r}. Expected 'memory' or 'file'.")
