# Generate the C header and source file for a PSoC peripheral configuration
#
# Sections for peripheral kinds without entries are left out entirely, there are no empty placeholder
# blocks. The init routine starts the peripherals in the order timers, UARTs, I2Cs, SPIs and finally
# drives the output pins low.

import logging
from datetime import datetime
from string import Template

from .. import GenerationResult, timestamp
from ...model import PinMode, SpiMode
from ...names import identifier, symbolPrefix

log = logging.getLogger(__name__)

HEADER_FILE_NAME = 'psoc_config.h'
SOURCE_FILE_NAME = 'psoc_config.c'


class PsocFormatter:
    def __init__(self, **keywords):
        self.headerTemplate     = Template(keywords.get('header', """/*
 * $project - Generated Header File
 * Version: $version
 * Generated: $timestamp
 */

#ifndef PSOC_CONFIG_H
#define PSOC_CONFIG_H

#include <project.h>

$clock$pins$timers$uarts$i2cs$spis$prototypes
#endif // PSOC_CONFIG_H
"""))
        self.clockTemplate      = Template(keywords.get('clock', '/* Clock Configuration */\n#define MAIN_CLOCK_FREQ_HZ    ${main}u\n$crystal\n'))
        self.crystalTemplate    = Template(keywords.get('crystal', '#define EXTERNAL_CRYSTAL_FREQ_HZ    ${freq}u\n#define USE_EXTERNAL_CRYSTAL    1\n'))
        self.noCrystal          = keywords.get('noCrystal', '#define USE_EXTERNAL_CRYSTAL    0\n')
        self.pinTemplate        = Template(keywords.get('pin', """#define ${macro}_PORT    P$port
#define ${macro}_PIN     $number
#define ${macro}_MASK    (1u << $number)
$comment
"""))
        self.timerTemplate      = Template(keywords.get('timer', '#define ${macro}_PERIOD    ${period}u\n'))
        self.timerIntTemplate   = Template(keywords.get('timerInt', '#define ${macro}_INTERRUPT_ENABLED    1\n'))
        self.uartTemplate       = Template(keywords.get('uart', """#define ${macro}_BAUD_RATE    ${baud}u
#define ${macro}_DATA_BITS    ${data}u
#define ${macro}_STOP_BITS    ${stop}u
"""))
        self.i2cTemplate        = Template(keywords.get('i2c', '#define ${macro}_CLOCK_FREQ    ${clock}u\n'))
        self.i2cSlaveTemplate   = Template(keywords.get('i2cSlave', '#define ${macro}_SLAVE_ADDR    $address\n'))
        self.spiTemplate        = Template(keywords.get('spi', '#define ${macro}_CLOCK_FREQ    ${clock}u\n#define ${macro}_MODE    ${mode}u\n'))
        self.prototypesTemplate = Template(keywords.get('prototypes', '/* Function Prototypes */\nvoid PsocConfig_Init(void);\n$protos\n'))
        self.isrProtoTemplate   = Template(keywords.get('isrProto', 'CY_ISR_PROTO(${name}_ISR);\n'))
        self.writeProtoTemplate = Template(keywords.get('writeProto', 'void ${name}_Write(uint8 value);\n'))
        self.readProtoTemplate  = Template(keywords.get('readProto', 'uint8 ${name}_Read(void);\n'))

        self.sourceTemplate     = Template(keywords.get('source', """/*
 * $project - Generated Source File
 * Version: $version
 * Generated: $timestamp
 */

#include "$header"

$init$isrs$accessors"""))
        self.initTemplate       = Template(keywords.get('init', """/*
 * Initialize all PSOC components
 */
void PsocConfig_Init(void)
{
    /* Enable global interrupts */
    CyGlobalIntEnable;

$starts}

"""))
        self.startTemplate      = Template(keywords.get('start', '    /* Initialize $title */\n    ${name}_Start();\n$extra\n'))
        self.isrStartTemplate   = Template(keywords.get('isrStart', '    ${name}_ISR_StartEx(${name}_ISR);\n'))
        self.pinInitTemplate    = Template(keywords.get('pinInit', '    /* Initialize $title */\n    ${macro}_PORT_DR &= ~${macro}_MASK; // Set initial state to low\n\n'))
        self.isrTemplate        = Template(keywords.get('isr', """/*
 * $title interrupt service routine
 */
CY_ISR(${name}_ISR)
{
    /* Clear the interrupt */
    ${name}_ReadStatusRegister();

    /* Call user handler */
    ${handler}();
}

"""))
        self.writeTemplate      = Template(keywords.get('write', """/*
 * Write to $title
 */
void ${name}_Write(uint8 value)
{
    if (value)
        ${macro}_PORT_DR |= ${macro}_MASK;
    else
        ${macro}_PORT_DR &= ~${macro}_MASK;
}

"""))
        self.readTemplate       = Template(keywords.get('read', """/*
 * Read from $title
 */
uint8 ${name}_Read(void)
{
    return (${macro}_PORT_PS & ${macro}_MASK) ? 1u : 0u;
}

"""))

    def formatSection(self, title:str, entries:str):
        """ A commented section of definitions, or nothing if there are no entries """
        return f'/* {title} */\n{entries}' if entries else ''

    def pinNames(self, pin):
        return dict(title=pin.name, name=identifier(pin.name, 'Pin'), macro=symbolPrefix(pin.name, 'PIN'))

    def timerNames(self, timer):
        return dict(title=timer.name, name=identifier(timer.name, 'Timer'), macro=symbolPrefix(timer.name, 'TIMER'))

    # ------------------------------------------------------------------
    # Header file
    # ------------------------------------------------------------------

    def formatClock(self, clock):
        crystal = self.noCrystal
        if clock.use_external_crystal:
            crystal = self.crystalTemplate.substitute(freq=clock.external_crystal_frequency)
        return self.clockTemplate.substitute(main=clock.main_clock_frequency, crystal=crystal)

    def formatPins(self, pins:list):
        txt = ''
        for pin in pins:
            comment = f'// {pin.comment}\n' if pin.comment else ''
            txt += self.pinTemplate.substitute(self.pinNames(pin), port=pin.port, number=pin.number, comment=comment)
        return self.formatSection('Pin Definitions', txt)

    def formatTimers(self, timers:list):
        txt = ''
        for timer in timers:
            names = self.timerNames(timer)
            txt += self.timerTemplate.substitute(names, period=timer.period)
            if timer.enable_interrupt:
                txt += self.timerIntTemplate.substitute(names)
        return self.formatSection('Timer Definitions', txt + '\n' if txt else '')

    def formatUarts(self, uarts:list):
        txt = ''.join(self.uartTemplate.substitute(macro=symbolPrefix(u.name, 'UART'), baud=u.baud_rate, data=u.data_bits, stop=u.stop_bits)
                      for u in uarts)
        return self.formatSection('UART Definitions', txt + '\n' if txt else '')

    def formatI2cs(self, i2cs:list):
        txt = ''
        for i2c in i2cs:
            macro = symbolPrefix(i2c.name, 'I2C')
            txt += self.i2cTemplate.substitute(macro=macro, clock=i2c.clock_frequency)
            if not i2c.is_master:
                if not 0 <= i2c.slave_address <= 0xFF:
                    raise ValueError(f"I2C slave address {i2c.slave_address!r} of {i2c.name!r} out of range")
                txt += self.i2cSlaveTemplate.substitute(macro=macro, address='0x%02X' % i2c.slave_address)
        return self.formatSection('I2C Definitions', txt + '\n' if txt else '')

    def formatSpis(self, spis:list):
        txt = ''.join(self.spiTemplate.substitute(macro=symbolPrefix(s.name, 'SPI'), clock=s.clock_frequency, mode=list(SpiMode).index(s.mode))
                      for s in spis)
        return self.formatSection('SPI Definitions', txt + '\n' if txt else '')

    def formatPrototypes(self, config):
        protos = ''
        for timer in config.timers:
            if timer.enable_interrupt:
                protos += self.isrProtoTemplate.substitute(self.timerNames(timer))
        for pin in config.pins:
            if pin.mode == PinMode.OUTPUT:
                protos += self.writeProtoTemplate.substitute(self.pinNames(pin))
        for pin in config.pins:
            if pin.mode == PinMode.INPUT:
                protos += self.readProtoTemplate.substitute(self.pinNames(pin))
        return self.prototypesTemplate.substitute(protos=protos)

    def formatHeader(self, config, stamp:str):
        return self.headerTemplate.substitute(project=config.project_name, version=config.version, timestamp=stamp,
            clock=self.formatClock(config.clock_settings),
            pins=self.formatPins(config.pins),
            timers=self.formatTimers(config.timers),
            uarts=self.formatUarts(config.uarts),
            i2cs=self.formatI2cs(config.i2cs),
            spis=self.formatSpis(config.spis),
            prototypes=self.formatPrototypes(config))

    # ------------------------------------------------------------------
    # Source file
    # ------------------------------------------------------------------

    def formatInit(self, config):
        starts = ''
        for timer in config.timers:
            names = self.timerNames(timer)
            extra = self.isrStartTemplate.substitute(names) if timer.enable_interrupt else ''
            starts += self.startTemplate.substitute(names, extra=extra)
        for kind, fallback in (('uarts', 'Uart'), ('i2cs', 'I2c'), ('spis', 'Spi')):
            for p in getattr(config, kind):
                starts += self.startTemplate.substitute(title=p.name, name=identifier(p.name, fallback), extra='')
        for pin in config.pins:
            if pin.mode == PinMode.OUTPUT:
                starts += self.pinInitTemplate.substitute(self.pinNames(pin))
        return self.initTemplate.substitute(starts=starts)

    def formatIsrs(self, timers:list):
        txt = ''
        for timer in timers:
            if not timer.enable_interrupt:
                continue
            names = self.timerNames(timer)
            handler = timer.interrupt_handler or names['name'] + '_Handler'
            txt += self.isrTemplate.substitute(names, handler=handler)
        return txt

    def formatAccessors(self, pins:list):
        writes = ''.join(self.writeTemplate.substitute(self.pinNames(p)) for p in pins if p.mode == PinMode.OUTPUT)
        reads = ''.join(self.readTemplate.substitute(self.pinNames(p)) for p in pins if p.mode == PinMode.INPUT)
        return writes + reads

    def formatSource(self, config, stamp:str):
        return self.sourceTemplate.substitute(project=config.project_name, version=config.version, timestamp=stamp,
            header=HEADER_FILE_NAME,
            init=self.formatInit(config),
            isrs=self.formatIsrs(config.timers),
            accessors=self.formatAccessors(config.pins))


def generateHeader(config, clock=datetime.now, formatter:PsocFormatter=None):
    """ Generate the header text. Invalid configurations raise. """
    fmt = formatter or PsocFormatter()
    return fmt.formatHeader(config, timestamp(clock))

def generateSource(config, clock=datetime.now, formatter:PsocFormatter=None):
    """ Generate the source text. Invalid configurations raise. """
    fmt = formatter or PsocFormatter()
    return fmt.formatSource(config, timestamp(clock))

def generate(config, clock=datetime.now, formatter:PsocFormatter=None):
    """ Generate the header/source pair and report the outcome as a GenerationResult """
    try:
        fmt = formatter or PsocFormatter()
        stamp = timestamp(clock)
        result = GenerationResult(
            header=fmt.formatHeader(config, stamp),
            source=fmt.formatSource(config, stamp),
            header_file_name=HEADER_FILE_NAME,
            source_file_name=SOURCE_FILE_NAME,
            success=True)
    except Exception as e:
        log.debug("peripheral code generation failed", exc_info=True)
        return GenerationResult.failure(str(e))
    log.debug("generated %s for project %s", HEADER_FILE_NAME, config.project_name)
    return result
