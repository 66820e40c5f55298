"""
Read and write configuration documents.

Modulator and PSoC configurations are kept as YAML documents with camelCase
keys. Each document is checked against the JSON Schema in `schemas/` before
it is converted into the data model, so the conversion itself can rely on
well formed input.

Free text fields (frequency, deadtime, duty cycle, phase shift) may be given
as numbers, they are converted with `str()`. Quote them in the document when
the exact spelling matters, e.g. `frequency: "100e3"`.
"""
import sys
from pathlib import Path

import yaml  # PyYAML
from jsonschema import Draft202012Validator
from ruamel.yaml import YAML

from .model import (AdcTriggerSource, ClockSettings, I2c, IsrTriggerSource, Modulator, ParityType, Phase, Pin, PinDrive,
                    PinMode, PsocConfiguration, PwmAlignment, Spi, SpiMode, Timer, TimerMode, Uart)

SCHEMA_DIR = Path(__file__).parent / 'schemas'


class ConfigError(ValueError):
    """ A configuration document is malformed or violates its schema. """


def loadSchema(name:str):
    schema = yaml.safe_load((SCHEMA_DIR / f'{name}.yaml').read_text(encoding='utf-8'))
    Draft202012Validator.check_schema(schema)
    return schema

def validate(data, name:str):
    """ Check a document against a schema, listing all violations in one ConfigError """
    validator = Draft202012Validator(loadSchema(name))
    errors = sorted(validator.iter_errors(data), key=lambda e: "/".join(str(p) for p in e.path))
    if errors:
        lines = []
        for e in errors:
            loc = "/".join([str(p) for p in e.path]) or "(root)"
            lines.append(f"at {loc}: {e.message}")
        raise ConfigError(f"invalid {name} configuration:\n  " + "\n  ".join(lines))

def loadDocument(filename):
    reader = YAML(typ='safe')
    try:
        with open(filename, 'r', encoding='utf-8') as file:
            return reader.load(file)
    except Exception as e:
        raise ConfigError(f"can't read {filename}: {e}") from e

def _text(value):
    return '' if value is None else str(value)


# ============================================================================
# Modulators
# ============================================================================

def phaseFromDict(data:dict):
    return Phase(
        id=data.get('id', 0),
        alias=data.get('alias', ''),
        pwm=data.get('pwm', ''),
        phase_shift=_text(data.get('phaseShift')),
        generate_isr=data.get('generateIsr', False),
        isr_trigger_source=IsrTriggerSource(data.get('isrTriggerSource', IsrTriggerSource.PERIOD_MATCH.value)),
        trigger_adc=data.get('triggerAdc', False),
        adc_trigger_source=AdcTriggerSource(data.get('adcTriggerSource', AdcTriggerSource.TR0.value)),
        alignment=PwmAlignment(data.get('alignment', PwmAlignment.CENTER_ALIGNED.value)),
        group_number=data.get('groupNumber', 0),
        inverted=data.get('inverted', False))

def modulatorsFromDict(data:dict):
    """ Convert a modulator document into a list of Modulator """
    validate(data, 'modulators')
    modulators = []
    for m in data['modulators']:
        modulators.append(Modulator(
            id=m.get('id', 0),
            name=m.get('name', ''),
            frequency=_text(m.get('frequency')),
            deadtime=_text(m.get('deadtime')),
            duty_cycle=_text(m.get('dutyCycle')),
            phases=[phaseFromDict(p) for p in m.get('phases') or []]))
    return modulators

def phaseToDict(phase:Phase):
    return {
        'id': phase.id,
        'alias': phase.alias,
        'pwm': phase.pwm,
        'phaseShift': phase.phase_shift,
        'generateIsr': phase.generate_isr,
        'isrTriggerSource': phase.isr_trigger_source.value,
        'triggerAdc': phase.trigger_adc,
        'adcTriggerSource': phase.adc_trigger_source.value,
        'alignment': phase.alignment.value,
        'groupNumber': phase.group_number,
        'inverted': phase.inverted,
    }

def modulatorsToDict(modulators:list):
    return {'modulators': [{
        'id': m.id,
        'name': m.name,
        'frequency': m.frequency,
        'deadtime': m.deadtime,
        'dutyCycle': m.duty_cycle,
        'phases': [phaseToDict(p) for p in m.phases],
    } for m in modulators]}

def loadModulators(filename):
    return modulatorsFromDict(loadDocument(filename))

def dumpModulators(modulators:list, file=None, comment:str=""):
    """ write a modulator document to a file or stream """
    writer = YAML()
    writer.indent(mapping=2, sequence=4, offset=2)
    file = sys.stdout if file is None else file
    if isinstance(file, (str, Path)):
        with open(file, 'w', encoding='utf-8') as out:
            dumpModulators(modulators, out, comment)
        return
    if comment:
        file.write(comment + "\n")
    writer.dump(modulatorsToDict(modulators), file)


# ============================================================================
# PSoC peripherals
# ============================================================================

def psocFromDict(data:dict):
    """ Convert a PSoC document into a PsocConfiguration """
    data = data or {}
    validate(data, 'psoc')
    clock = data.get('clockSettings') or {}
    defaults = ClockSettings()
    return PsocConfiguration(
        project_name=data.get('projectName', 'PsocProject'),
        version=_text(data.get('version', '1.0.0')),
        clock_settings=ClockSettings(
            main_clock_frequency=clock.get('mainClockFrequency', defaults.main_clock_frequency),
            use_external_crystal=clock.get('useExternalCrystal', defaults.use_external_crystal),
            external_crystal_frequency=clock.get('externalCrystalFrequency', defaults.external_crystal_frequency)),
        pins=[Pin(
            name=p['name'],
            port=p.get('port', 0),
            number=p.get('number', 0),
            mode=PinMode(p.get('mode', 'Input')),
            drive=PinDrive(p.get('drive', 'Standard')),
            pull_up=p.get('pullUp', False),
            pull_down=p.get('pullDown', False),
            comment=p.get('comment', '')) for p in data.get('pins') or []],
        timers=[Timer(
            name=t['name'],
            period=t.get('period', 1000),
            mode=TimerMode(t.get('mode', 'Continuous')),
            enable_interrupt=t.get('enableInterrupt', False),
            interrupt_handler=t.get('interruptHandler', '')) for t in data.get('timers') or []],
        uarts=[Uart(
            name=u['name'],
            baud_rate=u.get('baudRate', 9600),
            data_bits=u.get('dataBits', 8),
            parity=ParityType(u.get('parity', 'None')),
            stop_bits=u.get('stopBits', 1),
            tx_pin=u.get('txPin', ''),
            rx_pin=u.get('rxPin', '')) for u in data.get('uarts') or []],
        i2cs=[I2c(
            name=i['name'],
            clock_frequency=i.get('clockFrequency', 100000),
            scl_pin=i.get('sclPin', ''),
            sda_pin=i.get('sdaPin', ''),
            is_master=i.get('isMaster', True),
            slave_address=i.get('slaveAddress', 0x50)) for i in data.get('i2cs') or []],
        spis=[Spi(
            name=s['name'],
            clock_frequency=s.get('clockFrequency', 1000000),
            mode=SpiMode(s.get('mode', 'Mode0')),
            mosi_pin=s.get('mosiPin', ''),
            miso_pin=s.get('misoPin', ''),
            sclk_pin=s.get('sclkPin', ''),
            cs_pin=s.get('csPin', '')) for s in data.get('spis') or []])

def loadPsocConfiguration(filename):
    return psocFromDict(loadDocument(filename))
