import numpy as np

# Full scale in mV for each PS5000A_RANGE index (PS5000A_10MV ... PS5000A_200V)
channelInputRanges = [10, 20, 50, 100, 200, 500, 1000, 2000, 5000, 10000, 20000, 50000, 100000, 200000]


def range_in_mv(vrange):
    '''
    Full scale of a PS5000A_RANGE index in millivolts.
    '''
    if not 0 <= vrange < len(channelInputRanges):
        raise ValueError(f"Unknown voltage range index {vrange}")
    return channelInputRanges[vrange]


def adc_to_mv(code, range_mv, max_adc):
    '''
    Convert ADC codes into millivolts: code * range_mv / max_adc.

    code can be a single integer or an array of codes (e.g. the int16 buffer
    of a channel); the result has the same shape, as float64.
    '''
    if max_adc == 0:
        raise ValueError("max_adc must be non-zero")
    return np.multiply(code, range_mv, dtype='float64') / max_adc
