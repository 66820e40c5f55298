from modcat.model import Modulator
from modcat.names import baseName, fileStem, identifier, phaseEnumName, phaseName, symbolName, symbolPrefix


def test_file_stem():
    assert fileStem('Buck 1') == 'buck_1'
    assert fileStem('Main-Inverter.v2') == 'main_inverter_v2'


def test_symbol_prefix():
    assert symbolPrefix('Buck 1') == 'BUCK_1'
    assert symbolPrefix('boost-2') == 'BOOST_2'
    # periods are only replaced in file names
    assert symbolPrefix('a.b') == 'A.B'


def test_symbol_prefix_fallback():
    assert symbolPrefix('') == 'MODULATOR'
    assert symbolPrefix('   ') == 'MODULATOR'
    assert symbolPrefix('', 'PIN') == 'PIN'


def test_symbol_name_and_identifier():
    assert symbolName('Buck 1') == 'buck_1'
    assert symbolName(' ') == 'modulator'
    assert identifier('Tick Timer', 'Timer') == 'Tick_Timer'
    assert identifier('', 'Timer') == 'Timer'


def test_base_name_uses_first_modulator_only():
    assert baseName([Modulator(name='Buck 1'), Modulator(name='Boost 2')]) == 'buck_1'
    assert baseName([Modulator(name='Boost 2'), Modulator(name='Buck 1')]) == 'boost_2'


def test_base_name_fallback():
    assert baseName([]) == 'modulator_config'
    assert baseName([Modulator(name='')]) == 'modulator_config'
    assert baseName([Modulator(name='  '), Modulator(name='Buck 1')]) == 'modulator_config'


def test_phase_names():
    assert phaseEnumName('BUCK_1', 'PWM_A_INNER') == 'BUCK_1_A_INNER'
    assert phaseEnumName('BUCK_1', 'PWM_C') == 'BUCK_1_C'
    assert phaseName('PWM_A_INNER') == 'A'
    assert phaseName('PWM_B_OUTER') == 'B'
    assert phaseName('PWM_C') == 'C'


def test_phase_names_strip_anywhere():
    assert phaseEnumName('BUCK_1', 'TCPWM_3') == 'BUCK_1_TC3'
    assert phaseName('TCPWM_3_INNER') == 'TC3'
    assert phaseName('A_OUTER_2') == 'A_2'
