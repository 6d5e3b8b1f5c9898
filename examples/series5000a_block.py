'''
Block capture on a connected ps5000a: two channels, AWG sine on the output,
100 samples printed as raw codes and millivolts.
'''
import logging

from pypicoblock import BlockConfig, ChannelConfig, Picoscope5000aBlock

logging.basicConfig(level=logging.INFO)

# Measurement parameters
config = BlockConfig(n_samples = 100,
                     timebase = 250000,
                     channels = [ChannelConfig('PS5000A_CHANNEL_A', vrange = 'PS5000A_2V'),
                                 ChannelConfig('PS5000A_CHANNEL_B', vrange = 'PS5000A_2V')])

# Connect instrument and perform the acquisition
pico = Picoscope5000aBlock(config)
print("Type 's' and press enter to start the acquisition")
exit_code = pico.run()
print(f"> Pico msg: finished with exit code {exit_code}")
