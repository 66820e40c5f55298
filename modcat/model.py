"""
Data model for modulator and peripheral configurations.

The values of the enumerations are the display names used in configuration
documents and in design files.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import List


class IsrTriggerSource(Enum):
    PERIOD_MATCH = 'PeriodMatch'
    COMPARE0_MATCH = 'Compare0Match'
    COMPARE1_MATCH = 'Compare1Match'


class AdcTriggerSource(Enum):
    TR0 = 'TR0'
    TR1 = 'TR1'
    TR2 = 'TR2'
    TR3 = 'TR3'
    TR4 = 'TR4'
    TR5 = 'TR5'
    TR6 = 'TR6'
    TR7 = 'TR7'


class PwmAlignment(Enum):
    LEFT_ALIGNED = 'LeftAligned'
    RIGHT_ALIGNED = 'RightAligned'
    CENTER_ALIGNED = 'CenterAligned'


class PinMode(Enum):
    INPUT = 'Input'
    OUTPUT = 'Output'
    BIDIRECTIONAL = 'Bidirectional'
    ANALOG = 'Analog'


class PinDrive(Enum):
    STANDARD = 'Standard'
    HIGH_DRIVE = 'HighDrive'
    OPEN_DRAIN = 'OpenDrain'


class TimerMode(Enum):
    ONE_SHOT = 'OneShot'
    CONTINUOUS = 'Continuous'
    PWM = 'Pwm'


class ParityType(Enum):
    NONE = 'None'
    EVEN = 'Even'
    ODD = 'Odd'


class SpiMode(Enum):
    MODE0 = 'Mode0'     # CPOL=0, CPHA=0
    MODE1 = 'Mode1'     # CPOL=0, CPHA=1
    MODE2 = 'Mode2'     # CPOL=1, CPHA=0
    MODE3 = 'Mode3'     # CPOL=1, CPHA=1


def lookupEnum(enum:type, text:str):
    """ Find an enumerator by its value or by its member name.
        Returns None if the text names no enumerator. """
    for e in enum:
        if text in (e.value, e.name):
            return e
    return None


# ============================================================================
# Modulators
# ============================================================================

@dataclass
class Phase:
    """
    One PWM output of a modulator.

    A phase with an empty `pwm` is a placeholder and contributes no code.
    """
    id: int = 0
    alias: str = ''
    pwm: str = ''
    phase_shift: str = ''       # advisory, only emitted as a comment
    generate_isr: bool = False
    isr_trigger_source: IsrTriggerSource = IsrTriggerSource.PERIOD_MATCH
    trigger_adc: bool = False
    adc_trigger_source: AdcTriggerSource = AdcTriggerSource.TR0
    alignment: PwmAlignment = PwmAlignment.CENTER_ALIGNED
    group_number: int = 0       # 0, 1 or 2
    inverted: bool = False


@dataclass
class Modulator:
    """
    A PWM driven power conversion channel.

    Frequency, deadtime and duty cycle are free text that ends up verbatim
    in the generated code. The order of `phases` is significant.
    """
    id: int = 0
    name: str = ''
    frequency: str = ''
    deadtime: str = ''
    duty_cycle: str = ''
    phases: List[Phase] = field(default_factory=list)


# ============================================================================
# Peripherals
# ============================================================================

@dataclass
class ClockSettings:
    main_clock_frequency: int = 24000000
    use_external_crystal: bool = False
    external_crystal_frequency: int = 24000000


@dataclass
class Pin:
    name: str = ''
    port: int = 0
    number: int = 0
    mode: PinMode = PinMode.INPUT
    drive: PinDrive = PinDrive.STANDARD
    pull_up: bool = False
    pull_down: bool = False
    comment: str = ''


@dataclass
class Timer:
    name: str = ''
    period: int = 1000
    mode: TimerMode = TimerMode.CONTINUOUS
    enable_interrupt: bool = False
    interrupt_handler: str = ''


@dataclass
class Uart:
    name: str = ''
    baud_rate: int = 9600
    data_bits: int = 8
    parity: ParityType = ParityType.NONE
    stop_bits: int = 1
    tx_pin: str = ''
    rx_pin: str = ''


@dataclass
class I2c:
    name: str = ''
    clock_frequency: int = 100000
    scl_pin: str = ''
    sda_pin: str = ''
    is_master: bool = True
    slave_address: int = 0x50


@dataclass
class Spi:
    name: str = ''
    clock_frequency: int = 1000000
    mode: SpiMode = SpiMode.MODE0
    mosi_pin: str = ''
    miso_pin: str = ''
    sclk_pin: str = ''
    cs_pin: str = ''


@dataclass
class PsocConfiguration:
    """ Aggregate root for the peripheral code generator. """
    project_name: str = 'PsocProject'
    version: str = '1.0.0'
    clock_settings: ClockSettings = field(default_factory=ClockSettings)
    pins: List[Pin] = field(default_factory=list)
    timers: List[Timer] = field(default_factory=list)
    uarts: List[Uart] = field(default_factory=list)
    i2cs: List[I2c] = field(default_factory=list)
    spis: List[Spi] = field(default_factory=list)
