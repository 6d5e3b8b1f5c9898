from .config import BlockConfig, ChannelConfig, SigGenConfig, TriggerConfig
from .conversion import adc_to_mv
from .errors import CaptureDeclined, PicoBlockError, PicoStatusError, PicoTimeoutError
from .series5000a import CaptureState, PicoChannel, Picoscope5000aBlock

__all__ = ["BlockConfig", "ChannelConfig", "SigGenConfig", "TriggerConfig",
           "adc_to_mv",
           "CaptureDeclined", "PicoBlockError", "PicoStatusError", "PicoTimeoutError",
           "CaptureState", "PicoChannel", "Picoscope5000aBlock"]
