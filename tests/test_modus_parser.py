import pytest

from modcat.model import PwmAlignment
from modcat.parsers import modus


@pytest.fixture
def design(data_dir):
    return (data_dir / 'design.modus').read_text(encoding='utf-8')


def test_phases_numbered_in_document_order(design):
    result = modus.parse(design)
    assert result.success
    assert result.error_message == ''
    assert [p.id for p in result.phases] == [1, 2, 3]
    assert [p.pwm for p in result.phases] == ['PWM_A_INNER', 'PWM_B_OUTER', 'PWM_C']
    assert [p.alias for p in result.phases] == ['phaseA', 'phaseB', 'phaseC']


def test_known_parameters_applied(design):
    phase = modus.parse(design).phases[0]
    assert phase.phase_shift == '90'
    assert phase.inverted is True
    assert phase.group_number == 2
    assert phase.alignment == PwmAlignment.LEFT_ALIGNED


def test_missing_parameters_keep_defaults(design):
    phase = modus.parse(design).phases[1]
    assert phase.phase_shift == ''
    assert phase.inverted is False
    assert phase.group_number == 0
    assert phase.alignment == PwmAlignment.CENTER_ALIGNED
    assert phase.generate_isr is False


def test_unparsable_parameters_ignored(design):
    phase = modus.parse(design).phases[2]
    assert phase.group_number == 0
    assert phase.alignment == PwmAlignment.CENTER_ALIGNED
    # only the literal "true" inverts
    assert phase.inverted is False
    assert phase.phase_shift == ''


def test_alignment_by_member_name():
    xml = """<Design xmlns="http://cypress.com/xsd/cydesignfile_v5">
      <Personality template="mxs40pwm_ver2">
        <Block location="PWM_X"><Aliases><Alias value="x"/></Aliases></Block>
        <Parameters><Param id="PwmAlign" value="RIGHT_ALIGNED"/></Parameters>
      </Personality>
    </Design>"""
    result = modus.parse(xml)
    assert result.phases[0].alignment == PwmAlignment.RIGHT_ALIGNED


def test_blank_alias_does_not_consume_id():
    xml = """<Design xmlns="http://cypress.com/xsd/cydesignfile_v5">
      <Personality template="mxs40pwm_ver2">
        <Block location="PWM_1"><Aliases><Alias value="one"/></Aliases></Block>
      </Personality>
      <Personality template="mxs40pwm_ver2">
        <Block location="PWM_2"><Aliases><Alias value=""/></Aliases></Block>
      </Personality>
      <Personality template="mxs40pwm_ver2">
        <Block location="PWM_3"/>
      </Personality>
      <Personality template="mxs40pwm_ver2">
        <Block location="PWM_4"><Aliases><Alias value="four"/></Aliases></Block>
      </Personality>
    </Design>"""
    result = modus.parse(xml)
    assert [(p.id, p.pwm) for p in result.phases] == [(1, 'PWM_1'), (2, 'PWM_4')]


def test_other_namespace_ignored():
    xml = """<Design xmlns="http://cypress.com/xsd/cydesignfile_v5" xmlns:o="urn:other">
      <o:Personality template="mxs40pwm_ver2">
        <o:Block location="PWM_1"><o:Aliases><o:Alias value="one"/></o:Aliases></o:Block>
      </o:Personality>
    </Design>"""
    result = modus.parse(xml)
    assert result.success
    assert result.phases == []


def test_elements_without_namespace_ignored():
    xml = """<Design>
      <Personality template="mxs40pwm_ver2">
        <Block location="PWM_1"><Aliases><Alias value="one"/></Aliases></Block>
      </Personality>
    </Design>"""
    result = modus.parse(xml)
    assert result.success
    assert result.phases == []


def test_namespace_prefix_is_irrelevant():
    xml = """<d2:Design xmlns:d2="http://cypress.com/xsd/cydesignfile_v5">
      <d2:Personality template="mxs40pwm_ver2">
        <d2:Block location="PWM_1"><d2:Aliases><d2:Alias value="one"/></d2:Aliases></d2:Block>
        <d2:Parameters><d2:Param id="GroupNumber" value="2"/></d2:Parameters>
      </d2:Personality>
    </d2:Design>"""
    (phase,) = modus.parse(xml).phases
    assert phase.alias == 'one'
    assert phase.group_number == 2


def test_no_personalities():
    result = modus.parse('<Design xmlns="http://cypress.com/xsd/cydesignfile_v5"/>')
    assert result.success
    assert result.phases == []


@pytest.mark.parametrize('text', ['this is not xml', '', '<Design><Personality></Design>'])
def test_malformed_xml(text):
    result = modus.parse(text)
    assert not result.success
    assert result.phases == []
    assert result.error_message.startswith('Error parsing .modus file: ')
    assert len(result.error_message) > len('Error parsing .modus file: ')


def test_failure_discards_phases(design):
    def fail(value):
        raise RuntimeError('converter exploded')
    result = modus.parse(design, parameters={'InvertPwm': ('inverted', fail)})
    assert not result.success
    assert result.phases == []
    assert 'converter exploded' in result.error_message


def test_parse_file(data_dir):
    result = modus.parseFile(data_dir / 'design.modus')
    assert result.success
    assert len(result.phases) == 3
