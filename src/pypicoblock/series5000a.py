import ctypes
import enum
import logging
import time
from dataclasses import dataclass

import numpy as np
from picosdk.constants import PICO_STATUS, make_enum

from .config import BlockConfig
from .conversion import adc_to_mv, range_in_mv
from .errors import (CaptureDeclined, ConfigurationError, PicoBlockError, PicoStatusError,
                     PicoTimeoutError, status_name)

logger = logging.getLogger(__name__)

PICO_OK = PICO_STATUS['PICO_OK']
PICO_POWER_SUPPLY_NOT_CONNECTED = PICO_STATUS['PICO_POWER_SUPPLY_NOT_CONNECTED']

# Signal generator enums from ps5000aApi.h; the picosdk ps5000a wrapper does not define them
PS5000A_WAVE_TYPE = make_enum([
    "PS5000A_SINE",
    "PS5000A_SQUARE",
    "PS5000A_TRIANGLE",
    "PS5000A_RAMP_UP",
    "PS5000A_RAMP_DOWN",
    "PS5000A_SINC",
    "PS5000A_GAUSSIAN",
    "PS5000A_HALF_SINE",
    "PS5000A_DC_VOLTAGE",
    "PS5000A_WHITE_NOISE",
])

PS5000A_SWEEP_TYPE = make_enum([
    "PS5000A_UP",
    "PS5000A_DOWN",
    "PS5000A_UPDOWN",
    "PS5000A_DOWNUP",
])

PS5000A_EXTRA_OPERATIONS = make_enum([
    "PS5000A_ES_OFF",
    "PS5000A_WHITENOISE",
    "PS5000A_PRBS",
])

PS5000A_SIGGEN_TRIG_TYPE = make_enum([
    "PS5000A_SIGGEN_RISING",
    "PS5000A_SIGGEN_FALLING",
    "PS5000A_SIGGEN_GATE_HIGH",
    "PS5000A_SIGGEN_GATE_LOW",
])

PS5000A_SIGGEN_TRIG_SOURCE = make_enum([
    "PS5000A_SIGGEN_NONE",
    "PS5000A_SIGGEN_SCOPE_TRIG",
    "PS5000A_SIGGEN_AUX_IN",
    "PS5000A_SIGGEN_EXT_IN",
    "PS5000A_SIGGEN_SOFT_TRIG",
])


def load_driver():
    '''
    Import the ps5000a wrapper from picosdk. The import loads the vendor
    shared library, so it only happens when a real device is used.
    '''
    from picosdk.ps5000a import ps5000a
    return ps5000a


def _lookup(enum_values, name):
    try:
        return enum_values[name]
    except KeyError:
        print(f"ERROR : Unknown setting : {name}")
        raise ConfigurationError(f"{name!r} is not one of {sorted(enum_values)}") from None


class CaptureState(enum.Enum):
    IDLE = 'idle'
    ARMED = 'armed'
    POLLING = 'polling'
    READY = 'ready'
    TIMED_OUT = 'timed_out'
    ERROR = 'error'


@dataclass
class PicoChannel :
    name            : str
    vrange          : int
    enabled         : bool
    coupling        : int
    analogue_offset : float
    buffer          : np.ndarray = None
    status          : dict = None

    @property
    def letter(self):
        return self.name[-1]


class Picoscope5000aBlock():
    def __init__(self, config=None, driver=None, sleep=time.sleep):
        '''
        One block capture session on a ps5000a unit.

        driver defaults to picosdk's ps5000a module. Any object exposing the
        same enum dictionaries and ps5000a* functions can be used instead.
        Nothing is sent to the device before connect() (or run()).
        '''
        self.config = config if config is not None else BlockConfig()
        self.ps = driver if driver is not None else load_driver()
        self.sleep = sleep
        self.handle = ctypes.c_int16()
        self.status = {}
        self.channels = {}
        self.usb_powered = False
        self.is_open = False
        self.state = CaptureState.IDLE
        self.max_adc = ctypes.c_int16(self.config.max_adc)
        self.time_interval_ns = None
        self.max_samples = None
        self.time_indisposed_ms = None
        self.n_retrieved = 0
        self.overflow = 0

    def _check(self, key, label):
        status = self.status[key]
        logger.debug(f"{key} -> {status} ({status_name(status)})")
        if status != PICO_OK:
            print(f"ERROR : {label} : {status} ; {status:#x} ; {status_name(status)}")
            raise PicoStatusError(label, status)

    # -------------------------------------------------------------------------
    # Session lifecycle
    # -------------------------------------------------------------------------

    def connect(self):
        '''
        Open the unit. A unit running on USB power only opens with
        PICO_POWER_SUPPLY_NOT_CONNECTED and must be told to carry on with
        ps5000aChangePowerSource before anything else is accepted.
        '''
        self.status["openunit"] = self.ps.ps5000aOpenUnit(ctypes.byref(self.handle),
                                                          self.config.serial,
                                                          _lookup(self.ps.PS5000A_DEVICE_RESOLUTION, self.config.resolution))
        if self.status["openunit"] == PICO_POWER_SUPPLY_NOT_CONNECTED:
            logger.info("Unit is USB powered only, changing power source")
            self.usb_powered = True
            self.status["changePowerSource"] = self.ps.ps5000aChangePowerSource(self.handle,
                                                                                self.status["openunit"])
            self._check("changePowerSource", "Change Power Source")
        else:
            self._check("openunit", "Open Unit")
        self.is_open = True
        logger.info(f"Unit opened, handle {self.handle.value}")

    def disconnect(self):
        '''
        Close the unit. Called at most once per successful connect().
        '''
        self.is_open = False
        self.status["close"] = self.ps.ps5000aCloseUnit(self.handle)
        self._check("close", "Close Unit")
        logger.info("Device disconnected")

    # -------------------------------------------------------------------------
    # Channels and buffers
    # -------------------------------------------------------------------------

    def set_channel(self, channel_config):
        ch = PicoChannel(channel_config.name,
                         _lookup(self.ps.PS5000A_RANGE, channel_config.vrange),
                         channel_config.enabled,
                         _lookup(self.ps.PS5000A_COUPLING, channel_config.coupling),
                         channel_config.analogue_offset,
                         status={})
        ch.status["set_channel"] = self.ps.ps5000aSetChannel(self.handle,
                                                             _lookup(self.ps.PS5000A_CHANNEL, ch.name),
                                                             int(ch.enabled),
                                                             ch.coupling,
                                                             ch.vrange,
                                                             ch.analogue_offset)
        self.status[f"setCh{ch.letter}"] = ch.status["set_channel"]
        self._check(f"setCh{ch.letter}", f"Set Channel {ch.letter}")
        self.channels[ch.letter] = ch
        return ch

    def setup_channels(self):
        for channel_config in self.config.channels:
            self.set_channel(channel_config)
        if self.usb_powered:
            for channel_config in self.config.usb_power_channels:
                self.set_channel(channel_config)

    def enabled_channels(self):
        return [ch for ch in self.channels.values() if ch.enabled]

    def set_data_buffers(self):
        '''
        Allocate one int16 buffer per enabled channel and register it with
        the driver. The driver writes into these arrays during
        ps5000aGetValues, so they must stay alive and unresized until the
        samples have been read.
        '''
        n_samples = self.config.n_samples
        segmentIndex = 0
        for ch in self.enabled_channels():
            ch.buffer = np.zeros(shape=n_samples, dtype=np.int16)
            ch.status["setDataBuffer"] = self.ps.ps5000aSetDataBuffer(self.handle,
                                                                      _lookup(self.ps.PS5000A_CHANNEL, ch.name),
                                                                      ch.buffer.ctypes.data_as(
                                                                          ctypes.POINTER(ctypes.c_int16)),
                                                                      n_samples,
                                                                      segmentIndex,
                                                                      self.ps.PS5000A_RATIO_MODE['PS5000A_RATIO_MODE_NONE'])
            self.status[f"setDataBuffer{ch.letter}"] = ch.status["setDataBuffer"]
            self._check(f"setDataBuffer{ch.letter}", f"Set Buffer Channel {ch.letter}")

    def release_buffers(self):
        for ch in self.channels.values():
            ch.buffer = None

    # -------------------------------------------------------------------------
    # Timebase, trigger and signal generator
    # -------------------------------------------------------------------------

    def get_timebase(self):
        '''
        Ask the driver for the sample interval and the maximum number of
        samples available at the configured timebase. The requested sample
        count is kept even when the driver reports fewer.
        '''
        timeIntervalns = ctypes.c_int32()
        returnedMaxSamples = ctypes.c_int32()
        self.status["getTimebase"] = self.ps.ps5000aGetTimebase(self.handle,
                                                                self.config.timebase,
                                                                self.config.n_samples,
                                                                ctypes.byref(timeIntervalns),
                                                                ctypes.byref(returnedMaxSamples),
                                                                0)
        self._check("getTimebase", "Get Timebase")
        self.time_interval_ns = timeIntervalns.value
        self.max_samples = returnedMaxSamples.value
        logger.info(f"Timebase {self.config.timebase}: {self.time_interval_ns} ns, "
                    f"max {self.max_samples} samples")
        if self.max_samples < self.config.n_samples:
            logger.warning(f"Driver supports {self.max_samples} samples at this timebase, "
                           f"{self.config.n_samples} requested")
        return self.time_interval_ns, self.max_samples

    def get_max_adc(self):
        if self.config.query_max_adc:
            self.status["maximumValue"] = self.ps.ps5000aMaximumValue(self.handle,
                                                                      ctypes.byref(self.max_adc))
            self._check("maximumValue", "Maximum Value")
        return self.max_adc.value

    def set_trigger(self):
        trigger = self.config.trigger
        self.status["trigger"] = self.ps.ps5000aSetSimpleTrigger(self.handle,
                                                                 int(trigger.enabled),
                                                                 _lookup(self.ps.PS5000A_CHANNEL, trigger.source),
                                                                 trigger.threshold_adc,
                                                                 _lookup(self.ps.PS5000A_THRESHOLD_DIRECTION, trigger.direction),
                                                                 trigger.delay,
                                                                 trigger.auto_trigger_ms)
        self._check("trigger", "Set Trigger")

    def set_signal_generator(self):
        siggen = self.config.siggen
        if not siggen.enabled:
            return
        self.status["setSigGen"] = self.ps.ps5000aSetSigGenBuiltInV2(
            self.handle,
            siggen.offset_uv,
            siggen.pk_to_pk_uv,
            _lookup(PS5000A_WAVE_TYPE, siggen.wave_type),
            siggen.start_frequency,
            siggen.stop_frequency,
            siggen.increment,
            siggen.dwell_time,
            _lookup(PS5000A_SWEEP_TYPE, siggen.sweep_type),
            _lookup(PS5000A_EXTRA_OPERATIONS, siggen.operation),
            siggen.shots,
            siggen.sweeps,
            _lookup(PS5000A_SIGGEN_TRIG_TYPE, siggen.trigger_type),
            _lookup(PS5000A_SIGGEN_TRIG_SOURCE, siggen.trigger_source),
            siggen.ext_in_threshold)
        self._check("setSigGen", "AWG Signal Generation")

    # -------------------------------------------------------------------------
    # Capture
    # -------------------------------------------------------------------------

    def confirm(self, read_input=None):
        '''
        Block until the user enters a token starting with start_char.
        Anything else declines the capture.
        '''
        if read_input is None:
            read_input = input
        try:
            token = read_input().strip()
        except EOFError:
            token = ''
        if token[:1] == self.config.start_char:
            print("Acquiring ...")
            return
        print("Exiting ...")
        raise CaptureDeclined(f"Capture declined by user input {token!r}")

    def run_block(self):
        timeIndisposedMs = ctypes.c_int32()
        self.status["runBlock"] = self.ps.ps5000aRunBlock(self.handle,
                                                          self.config.pre_trigger_samples,
                                                          self.config.post_trigger_samples,
                                                          self.config.timebase,
                                                          ctypes.byref(timeIndisposedMs),
                                                          0,
                                                          None,
                                                          None)
        self._check("runBlock", "RunBlock")
        self.state = CaptureState.ARMED
        self.time_indisposed_ms = timeIndisposedMs.value

    def wait_until_ready(self):
        '''
        Poll ps5000aIsReady until the capture completes. Each poll that finds
        the unit busy sleeps poll_interval; once more than poll_ceiling polls
        have gone by the acquisition is stopped and the unit closed before
        PicoTimeoutError is raised.
        '''
        self.state = CaptureState.POLLING
        ready = ctypes.c_int16(0)
        elapsed = 0
        while True:
            self.status["isReady"] = self.ps.ps5000aIsReady(self.handle, ctypes.byref(ready))
            try:
                self._check("isReady", "IsReady Issue")
            except PicoStatusError:
                self.state = CaptureState.ERROR
                raise
            if ready.value:
                break
            if elapsed > self.config.poll_ceiling:
                self._abort_capture()
                print("TIMEOUT")
                raise PicoTimeoutError(elapsed)
            self.sleep(self.config.poll_interval)
            elapsed += 1
        self.state = CaptureState.READY
        print(f"IsReady : {elapsed}")
        return elapsed

    def _abort_capture(self):
        self.state = CaptureState.TIMED_OUT
        self.status["stop"] = self.ps.ps5000aStop(self.handle)
        if self.status["stop"] != PICO_OK:
            logger.warning(f"Stop after timeout returned {status_name(self.status['stop'])}")
        self.is_open = False
        self.status["close"] = self.ps.ps5000aCloseUnit(self.handle)
        if self.status["close"] != PICO_OK:
            logger.warning(f"Close after timeout returned {status_name(self.status['close'])}")

    def get_values(self):
        '''
        Copy the captured samples into the registered buffers. Returns the
        number of samples the driver actually delivered, which can be fewer
        than requested.
        '''
        cmaxSamples = ctypes.c_uint32(self.config.n_samples)
        overflow = ctypes.c_int16()
        self.status["getValues"] = self.ps.ps5000aGetValues(self.handle,
                                                            0,
                                                            ctypes.byref(cmaxSamples),
                                                            1,
                                                            self.ps.PS5000A_RATIO_MODE['PS5000A_RATIO_MODE_NONE'],
                                                            0,
                                                            ctypes.byref(overflow))
        self._check("getValues", "Get Values Issue")
        self.n_retrieved = cmaxSamples.value
        self.overflow = overflow.value
        if self.overflow:
            logger.warning(f"Over-range on channels, overflow mask {self.overflow:#06b}")
        logger.info(f"Retrieved {self.n_retrieved} of {self.config.n_samples} samples")
        return self.n_retrieved

    def convert_channel(self, ch, n_samples=None):
        '''
        Millivolt values of the first n_samples codes of a channel buffer.
        '''
        codes = ch.buffer[:self.n_retrieved if n_samples is None else n_samples]
        return adc_to_mv(codes, range_in_mv(ch.vrange), self.max_adc.value)

    def print_buffers(self, n_samples=None):
        n_samples = self.n_retrieved if n_samples is None else n_samples
        for i, ch in enumerate(self.enabled_channels()):
            if i:
                print()
            print(f"Print Buffer {ch.letter} : ")
            codes = ch.buffer[:n_samples]
            for sampleIndex, (code, mv) in enumerate(zip(codes, self.convert_channel(ch, n_samples))):
                print(f"{sampleIndex} ; {code} ; {mv:g}")

    # -------------------------------------------------------------------------
    # Whole workflow
    # -------------------------------------------------------------------------

    def acquire(self, read_input=None):
        self.setup_channels()
        self.set_data_buffers()
        self.get_timebase()
        self.get_max_adc()
        self.set_trigger()
        self.set_signal_generator()
        self.confirm(read_input)
        self.run_block()
        self.wait_until_ready()
        n_samples = self.get_values()
        self.print_buffers(n_samples)
        return n_samples

    def run(self, read_input=None):
        '''
        Open the unit, capture one block and print it. Returns 0 on success
        and -1 when any step failed; the unit is closed on every path that
        opened it.
        '''
        try:
            self.connect()
        except PicoBlockError:
            return -1
        exit_code = 0
        try:
            self.acquire(read_input)
        except PicoBlockError as e:
            logger.error(f"Block capture aborted: {e}")
            exit_code = -1
        finally:
            self.release_buffers()
            if self.is_open:
                try:
                    self.disconnect()
                except PicoStatusError:
                    exit_code = -1
        return exit_code
