"""
Import PWM phases from a ModusToolbox design file (.modus).

The design file is XML. Every `Personality` element whose `template`
attribute names the PWM personality becomes one `Phase`, provided it has a
`Block` with a non-blank alias:

    <Personality template="mxs40pwm_ver2">
      <Block location="PWM_A_INNER">
        <Aliases><Alias value="phaseA"/></Aliases>
      </Block>
      <Parameters>
        <Param id="PwmAlign" value="CenterAligned"/>
      </Parameters>
    </Personality>

Unknown elements, attributes and parameter ids are ignored, as are
parameter values that can't be converted. Elements count only in the
design namespace, `Personality` without a namespace is not recognised.
"""
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List

import xmltodict

from ..model import Phase, PwmAlignment, lookupEnum

log = logging.getLogger(__name__)

NAMESPACE = 'http://cypress.com/xsd/cydesignfile_v5'
TEMPLATE = 'mxs40pwm_ver2'
PREFIX = 'd'     # short name of the design namespace in parsed tags


def _toBoolean(value:str):
    return value == 'true'

def _toInt(value:str):
    try:
        return int(value)
    except ValueError:
        return None

def _toAlignment(value:str):
    return lookupEnum(PwmAlignment, value)

# Parameter id -> (Phase attribute, converter). A converter returning None
# leaves the attribute at its default.
PARAMETER_IDS = {
    'PhaseShift':  ('phase_shift', str),
    'InvertPwm':   ('inverted', _toBoolean),
    'GroupNumber': ('group_number', _toInt),
    'PwmAlign':    ('alignment', _toAlignment),
}


@dataclass
class ParseResult:
    phases: List[Phase] = field(default_factory=list)
    success: bool = False
    error_message: str = ''


def asArray(tbl):
    """ return as an array of tables, even if tbl is only a single table """
    return tbl if isinstance(tbl, list) else ([ tbl ] if tbl else [])

def child(elem, tag:str):
    """ Return the first child element with the given tag, or None. """
    if not isinstance(elem, dict):
        return None
    children = asArray(elem.get(tag))
    return children[0] if children else None

def attribute(elem, name:str):
    """ Return the value of an attribute, or the empty string if it's absent. """
    if not isinstance(elem, dict):
        return ''
    return elem.get('@' + name) or ''

def findElements(node, tag:str):
    """ Yield all descendants of node with the given tag, in document order. """
    if isinstance(node, list):
        for n in node:
            yield from findElements(n, tag)
    elif isinstance(node, dict):
        for k, v in node.items():
            if k.startswith('@') or k == '#text':
                continue
            if k == tag:
                for e in asArray(v):
                    yield e
                    yield from findElements(e, tag)
            else:
                yield from findElements(v, tag)


def tag(name:str):
    """ Tag of a design namespace element as produced by xmltodict """
    return f'{PREFIX}:{name}'


def applyParameters(phase:Phase, parameters, known:dict):
    """ Copy the known parameters of a personality onto the phase. """
    if not isinstance(parameters, dict):
        return
    for param in asArray(parameters.get(tag('Param'))):
        key, value = attribute(param, 'id'), attribute(param, 'value')
        if not key or not value:
            continue
        if key not in known:
            continue
        name, convert = known[key]
        converted = convert(value)
        if converted is None:
            log.debug("ignoring %s=%r of %s", key, value, phase.pwm)
            continue
        setattr(phase, name, converted)


def parse(xmlText, namespace:str=NAMESPACE, template:str=TEMPLATE, parameters:dict=None):
    """ Parse a design file and return the PWM phases found in it.

        Phases are numbered from 1 in document order. Any failure discards
        all phases found so far. """
    known = PARAMETER_IDS if parameters is None else parameters
    try:
        root = xmltodict.parse(xmlText, process_namespaces=True, namespaces={namespace: PREFIX})
        phases = []
        for personality in findElements(root, tag('Personality')):
            if attribute(personality, 'template') != template:
                continue
            block = child(personality, tag('Block'))
            if block is None:
                log.debug("personality without block skipped")
                continue
            alias = attribute(child(child(block, tag('Aliases')), tag('Alias')), 'value')
            if not alias.strip():
                log.debug("block %r without alias skipped", attribute(block, 'location'))
                continue
            phase = Phase(id=len(phases) + 1, alias=alias, pwm=attribute(block, 'location'))
            applyParameters(phase, child(personality, tag('Parameters')), known)
            phases.append(phase)
    except Exception as e:
        return ParseResult(success=False, error_message=f"Error parsing .modus file: {e}")
    log.debug("imported %d phases", len(phases))
    return ParseResult(phases=phases, success=True)


def parseFile(filename):
    """ read a design file and parse it """
    return parse(Path(filename).read_text(encoding='utf-8'))
