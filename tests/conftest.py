"""Fake ps5000a driver with the same call surface as picosdk's wrapper.

Every call is recorded by name in ``calls`` (with its arguments in
``call_args``) and returns the status scripted in ``statuses`` (PICO_OK when
nothing is scripted). A list of statuses is consumed one per call.
"""
import pytest
from picosdk.constants import PICO_STATUS

from pypicoblock.config import BlockConfig
from pypicoblock.series5000a import Picoscope5000aBlock

PICO_OK = PICO_STATUS["PICO_OK"]
PICO_INVALID_PARAMETER = PICO_STATUS["PICO_INVALID_PARAMETER"]
PICO_POWER_SUPPLY_NOT_CONNECTED = PICO_STATUS["PICO_POWER_SUPPLY_NOT_CONNECTED"]


def _enum(names, start=0):
    return {name: i for i, name in enumerate(names, start)}


def ramp_codes(channel, n_samples):
    """Deterministic ADC codes for a channel index, spanning negative and positive values."""
    return [((i * 600) % 60000) - 30000 + channel * 97 for i in range(n_samples)]


class FakePs5000a:
    PS5000A_DEVICE_RESOLUTION = _enum(['PS5000A_DR_8BIT', 'PS5000A_DR_12BIT', 'PS5000A_DR_14BIT',
                                       'PS5000A_DR_15BIT', 'PS5000A_DR_16BIT'])
    PS5000A_CHANNEL = _enum(['PS5000A_CHANNEL_A', 'PS5000A_CHANNEL_B', 'PS5000A_CHANNEL_C',
                             'PS5000A_CHANNEL_D'])
    PS5000A_COUPLING = _enum(['PS5000A_AC', 'PS5000A_DC'])
    PS5000A_RANGE = _enum(['PS5000A_10MV', 'PS5000A_20MV', 'PS5000A_50MV', 'PS5000A_100MV',
                           'PS5000A_200MV', 'PS5000A_500MV', 'PS5000A_1V', 'PS5000A_2V',
                           'PS5000A_5V', 'PS5000A_10V', 'PS5000A_20V', 'PS5000A_50V'])
    PS5000A_RATIO_MODE = {'PS5000A_RATIO_MODE_NONE': 0, 'PS5000A_RATIO_MODE_AGGREGATE': 1}
    PS5000A_THRESHOLD_DIRECTION = _enum(['PS5000A_ABOVE', 'PS5000A_BELOW', 'PS5000A_RISING',
                                         'PS5000A_FALLING', 'PS5000A_RISING_OR_FALLING'])

    def __init__(self, statuses=None, ready_sequence=(True,), ready_default=False,
                 returned_samples=None, max_samples=None, max_adc=32767, overflow=0):
        self.statuses = dict(statuses or {})
        self.ready = iter(ready_sequence)
        self.ready_default = ready_default
        self.returned_samples = returned_samples
        self.max_samples = max_samples
        self.max_adc = max_adc
        self.overflow = overflow
        self.calls = []
        self.call_args = []
        self.buffers = {}

    def _record(self, name, *args):
        self.calls.append(name)
        self.call_args.append((name, args))
        status = self.statuses.get(name, PICO_OK)
        if isinstance(status, list):
            status = status.pop(0) if status else PICO_OK
        return status

    def ps5000aOpenUnit(self, handle_ref, serial, resolution):
        handle_ref._obj.value = 1
        return self._record('ps5000aOpenUnit', serial, resolution)

    def ps5000aChangePowerSource(self, handle, power_state):
        return self._record('ps5000aChangePowerSource', power_state)

    def ps5000aSetChannel(self, handle, channel, enabled, coupling, vrange, offset):
        return self._record('ps5000aSetChannel', channel, enabled, coupling, vrange, offset)

    def ps5000aSetDataBuffer(self, handle, channel, buffer_ptr, length, segment, ratio_mode):
        self.buffers[channel] = (buffer_ptr, length)
        return self._record('ps5000aSetDataBuffer', channel, length, segment, ratio_mode)

    def ps5000aGetTimebase(self, handle, timebase, n_samples, interval_ref, max_samples_ref, segment):
        interval_ref._obj.value = 8 * (timebase - 2)
        max_samples_ref._obj.value = n_samples if self.max_samples is None else self.max_samples
        return self._record('ps5000aGetTimebase', timebase, n_samples, segment)

    def ps5000aMaximumValue(self, handle, value_ref):
        value_ref._obj.value = self.max_adc
        return self._record('ps5000aMaximumValue')

    def ps5000aSetSimpleTrigger(self, handle, enabled, source, threshold, direction, delay, auto_trigger_ms):
        return self._record('ps5000aSetSimpleTrigger', enabled, source, threshold, direction, delay,
                            auto_trigger_ms)

    def ps5000aSetSigGenBuiltInV2(self, handle, *args):
        return self._record('ps5000aSetSigGenBuiltInV2', *args)

    def ps5000aRunBlock(self, handle, pre, post, timebase, indisposed_ref, segment, callback, param):
        indisposed_ref._obj.value = 3
        return self._record('ps5000aRunBlock', pre, post, timebase, segment)

    def ps5000aIsReady(self, handle, ready_ref):
        ready_ref._obj.value = int(next(self.ready, self.ready_default))
        return self._record('ps5000aIsReady')

    def ps5000aStop(self, handle):
        return self._record('ps5000aStop')

    def ps5000aGetValues(self, handle, start, n_ref, ratio, ratio_mode, segment, overflow_ref):
        status = self._record('ps5000aGetValues', start, n_ref._obj.value, ratio, ratio_mode, segment)
        if status != PICO_OK:
            return status
        n_samples = n_ref._obj.value
        if self.returned_samples is not None:
            n_samples = min(n_samples, self.returned_samples)
        for channel, (buffer_ptr, length) in self.buffers.items():
            for i, code in enumerate(ramp_codes(channel, min(n_samples, length))):
                buffer_ptr[i] = code
        n_ref._obj.value = n_samples
        overflow_ref._obj.value = self.overflow
        return status

    def ps5000aCloseUnit(self, handle):
        return self._record('ps5000aCloseUnit')


class SleepRecorder:
    def __init__(self):
        self.calls = []

    def __call__(self, seconds):
        self.calls.append(seconds)


@pytest.fixture
def fake_driver():
    return FakePs5000a


@pytest.fixture
def sleeper():
    return SleepRecorder()


@pytest.fixture
def make_scope(sleeper):
    def _make(driver=None, **config):
        return Picoscope5000aBlock(BlockConfig.from_dict(config),
                                   driver=driver if driver is not None else FakePs5000a(),
                                   sleep=sleeper)
    return _make


@pytest.fixture
def codes():
    return ramp_codes
