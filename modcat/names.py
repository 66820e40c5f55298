# Derive file names and C identifiers from free text names.
import re


def fileStem(name:str):
    """ Lower case the name and replace space, hyphen and period with underscore. """
    return re.sub(r'[ .-]', '_', name.lower())


def symbolPrefix(name:str, fallback:str='MODULATOR'):
    """ Upper case prefix for enum tags, macros and function names.
        Blank names map to the fallback token. """
    if not name or not name.strip():
        return fallback
    return re.sub(r'[ -]', '_', name.upper())


def symbolName(name:str, fallback:str='modulator'):
    """ Lower case name used for generated variables and functions of a modulator. """
    if not name or not name.strip():
        return fallback
    return re.sub(r'[ -]', '_', name.lower())


def identifier(name:str, fallback:str):
    """ Name with its case kept, space and hyphen replaced with underscore. """
    if not name or not name.strip():
        return fallback
    return re.sub(r'[ -]', '_', name)


def baseName(modulators:list, fallback:str='modulator_config'):
    """ Base name of the generated file pair.

        Only the first modulator of the list counts: reordering the list
        renames the output files. """
    if modulators and modulators[0].name.strip():
        return fileStem(modulators[0].name)
    return fallback


def phaseEnumName(prefix:str, pwm:str):
    """ Enumerator naming a phase in the combined phase enumeration. """
    return f"{prefix}_{pwm.replace('PWM_', '')}"


def phaseName(pwm:str):
    """ Short phase name used for ADC macros, controller ISRs and DMA channels. """
    return pwm.replace('PWM_', '').replace('_INNER', '').replace('_OUTER', '')
