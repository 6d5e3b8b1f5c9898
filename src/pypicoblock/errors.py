from picosdk.constants import PICO_STATUS_LOOKUP
from picosdk.errors import PicoSDKCtypesError


class PicoBlockError(Exception):
    '''Base class for every checked failure that ends a block capture run.'''


class PicoStatusError(PicoBlockError, PicoSDKCtypesError):
    '''
    A driver call returned something other than PICO_OK.
    '''
    def __init__(self, label, status):
        self.label = label
        self.status = status
        super().__init__(f"{label} : {status} ; {status:#x} ; {status_name(status)}")


class PicoTimeoutError(PicoBlockError):
    def __init__(self, iterations):
        self.iterations = iterations
        super().__init__(f"Capture not ready after {iterations} polls")


class CaptureDeclined(PicoBlockError):
    pass


class ConfigurationError(PicoBlockError, ValueError):
    pass


def status_name(status):
    return PICO_STATUS_LOOKUP.get(status, "UNKNOWN_STATUS")
