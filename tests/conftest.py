from datetime import datetime
from pathlib import Path

import pytest

from modcat.model import Modulator, Phase

DATA_DIR = Path(__file__).parent / 'data'


@pytest.fixture
def data_dir():
    return DATA_DIR


@pytest.fixture
def clock():
    """ A clock frozen at a fixed point in time """
    return lambda: datetime(2024, 5, 1, 12, 30, 0)


@pytest.fixture
def modulators():
    buck = Modulator(name='Buck 1', frequency='100e3', duty_cycle='0.4', phases=[
        Phase(pwm='PWM_A_INNER', phase_shift='0', generate_isr=True, trigger_adc=True),
        Phase(pwm='PWM_B_OUTER', phase_shift='180', generate_isr=True),
        Phase(pwm=''),
    ])
    boost = Modulator(name='Boost 2', phases=[Phase(pwm='PWM_C')])
    return [buck, boost]
