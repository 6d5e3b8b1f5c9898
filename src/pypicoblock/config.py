from dataclasses import dataclass, field
from typing import Any


@dataclass
class ChannelConfig:
    name            : str
    enabled         : bool = True
    coupling        : str = 'PS5000A_DC'
    vrange          : str = 'PS5000A_1V'
    analogue_offset : float = 0.0


@dataclass
class TriggerConfig:
    enabled         : bool = True
    source          : str = 'PS5000A_CHANNEL_A'
    threshold_adc   : int = 10000
    direction       : str = 'PS5000A_RISING'
    delay           : int = 0       # sample periods between trigger and first sample
    auto_trigger_ms : int = 5000    # 0 waits forever for a trigger event


@dataclass
class SigGenConfig:
    '''
    Built-in signal generator settings, passed to ps5000aSetSigGenBuiltInV2.
    Voltages are in microvolts, frequencies in Hz.
    '''
    enabled          : bool = True
    offset_uv        : int = 0
    pk_to_pk_uv      : int = 1000000
    wave_type        : str = 'PS5000A_SINE'
    start_frequency  : float = 1000000.0
    stop_frequency   : float = 1000000.0
    increment        : float = 1.0
    dwell_time       : float = 1.0
    sweep_type       : str = 'PS5000A_UP'
    operation        : str = 'PS5000A_ES_OFF'
    shots            : int = 0
    sweeps           : int = 0
    trigger_type     : str = 'PS5000A_SIGGEN_RISING'
    trigger_source   : str = 'PS5000A_SIGGEN_NONE'
    ext_in_threshold : int = 0


def _default_channels():
    return [ChannelConfig('PS5000A_CHANNEL_A'), ChannelConfig('PS5000A_CHANNEL_B')]


def _default_usb_power_channels():
    return [ChannelConfig('PS5000A_CHANNEL_C', enabled=False),
            ChannelConfig('PS5000A_CHANNEL_D', enabled=False)]


@dataclass
class BlockConfig:
    '''
    Everything needed for one block capture.

    usb_power_channels are only sent to the driver when the unit opened on
    USB power alone (4-channel models are limited to two channels then).
    poll_ceiling is the number of poll_interval sleeps after which a capture
    that is still not ready is stopped.
    '''
    resolution          : str = 'PS5000A_DR_15BIT'
    serial              : Any = None
    n_samples           : int = 100
    timebase            : int = 250000
    pre_trigger_samples : int = None   # 10, or n_samples - 1 for shorter captures
    channels            : list = field(default_factory=_default_channels)
    usb_power_channels  : list = field(default_factory=_default_usb_power_channels)
    trigger             : TriggerConfig = field(default_factory=TriggerConfig)
    siggen              : SigGenConfig = field(default_factory=SigGenConfig)
    poll_interval       : float = 0.001
    poll_ceiling        : int = 2000
    start_char          : str = 's'
    max_adc             : int = 32767
    query_max_adc       : bool = True

    def __post_init__(self):
        if self.n_samples <= 0:
            raise ValueError(f"n_samples must be positive, got {self.n_samples}")
        if self.pre_trigger_samples is None:
            self.pre_trigger_samples = min(10, self.n_samples - 1)
        if not 0 <= self.pre_trigger_samples < self.n_samples:
            raise ValueError(f"pre_trigger_samples must be in [0, {self.n_samples}), "
                             f"got {self.pre_trigger_samples}")
        if not self.start_char:
            raise ValueError("start_char must not be empty")

    @classmethod
    def from_dict(cls, config: dict[str, Any]) -> "BlockConfig":
        '''
        Build a configuration from a plain dictionary (e.g. parsed JSON).
        Missing keys keep their defaults; channels are given as lists of
        dictionaries with the ChannelConfig field names.
        '''
        default = cls()
        channels = config.get("channels")
        usb_power_channels = config.get("usb_power_channels")
        return cls(
            resolution=config.get("resolution", default.resolution),
            serial=config.get("serial", default.serial),
            n_samples=int(config.get("n_samples", default.n_samples)),
            timebase=int(config.get("timebase", default.timebase)),
            pre_trigger_samples=config.get("pre_trigger_samples"),
            channels=default.channels if channels is None else [ChannelConfig(**ch) for ch in channels],
            usb_power_channels=(default.usb_power_channels if usb_power_channels is None
                                else [ChannelConfig(**ch) for ch in usb_power_channels]),
            trigger=TriggerConfig(**config.get("trigger", {})),
            siggen=SigGenConfig(**config.get("siggen", {})),
            poll_interval=float(config.get("poll_interval", default.poll_interval)),
            poll_ceiling=int(config.get("poll_ceiling", default.poll_ceiling)),
            start_char=config.get("start_char", default.start_char),
            max_adc=int(config.get("max_adc", default.max_adc)),
            query_max_adc=bool(config.get("query_max_adc", default.query_max_adc)),
        )

    @property
    def post_trigger_samples(self):
        return self.n_samples - self.pre_trigger_samples - 1
