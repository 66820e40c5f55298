# Generate the C header and source file for a list of modulators
#
# Every modulator gets its own set of types, a configuration instance and a driver API. All phases of all
# modulators share one enumeration `modulator_phase_t`, so the order of the modulators and of their phases
# determines the numbering of the enumerators.
#
# Phases with an empty PWM name are placeholders in the configuration and produce no code at all.
# Without any active phase `modulator_phase_t` is not emitted, while `setDuty` and the current controller
# still use it: such a pair only compiles once at least one phase has a PWM name.
#
# As with the other generators, formatting is expected to be fine tuned with clang-format if desired.

import logging
from datetime import datetime
from string import Template

from .. import GenerationResult, timestamp
from ...names import baseName, phaseEnumName, phaseName, symbolName, symbolPrefix

log = logging.getLogger(__name__)

ISR_ATTRIBUTE = '__attribute__ ((interrupt ("IRQ"))) __attribute__ ((section (".sram")))'
DEFAULT_DUTY = '0.5f'
DEFAULT_FSW = '80e3'


def activePhases(modulator):
    """ The phases that produce code, in declaration order """
    return [p for p in modulator.phases if p.pwm]

def dutyLiteral(text:str):
    """ Float literal for the initial duty cycle, taken verbatim from the configuration """
    text = text.strip() if text else ''
    if not text:
        return DEFAULT_DUTY
    return text if text[-1] in 'fF' else text + 'f'

def fswLiteral(text:str):
    text = text.strip() if text else ''
    return text or DEFAULT_FSW


class ModulatorFormatter:
    def __init__(self, **keywords):
        self.headerTemplate      = Template(keywords.get('header', """/*
 * $base - Generated Header File
 * Generated: $timestamp
 */

#ifndef $guard
#define $guard

#include <stdint.h>
#include <stdbool.h>

/* Modulator Configuration Enums and Defines */

$modes
$phases$limits$adc$structs$prototypes
#endif /* $guard */
"""))
        self.modeTemplate        = Template(keywords.get('mode', 'typedef enum {${prefix}_disabled, ${prefix}_openLoop, ${prefix}_currentControl} ${prefix}_mode_t;\n'))
        self.phaseEnumTemplate   = Template(keywords.get('phaseEnum', 'typedef enum {\n$enums\n} modulator_phase_t;\n\n'))
        self.phaseEntryTemplate  = Template(keywords.get('phaseEntry', '    $enum'))
        self.limitsTemplate      = Template(keywords.get('limits', """/* $title Duty Cycle Limits */
#define ${prefix}_MAX_DUTY 0.97f
#define ${prefix}_MIN_DUTY 0.03f

"""))
        self.adcTemplate         = Template(keywords.get('adc', '/* $title ADC Definitions */\n$defines\n'))
        self.adcDefineTemplate   = Template(keywords.get('adcDefine', """#define ${prefix}_I_${phase} (${name}_config.${name}.ADC_res[0])
#define ${prefix}_VFC_${phase} (${name}_config.${name}.ADC_res[1])
"""))
        self.structsTemplate     = Template(keywords.get('structs', """/* $title Phase Configuration Structure */
typedef struct ${prefix}_phaseConfig_t
{
    float duty;
    uint16_t period;
    uint32_t Iref;
    int32_t compareValueOffset;
    uint32_t ADC_res[2];
    uint32_t currentFilt;
} ${prefix}_phaseConfig_t;

/* $title Configuration Structure */
typedef struct ${name}_config_t
{
    ${prefix}_phaseConfig_t ${name};
    float Kp;
    uint32_t deadtimePos;
    uint32_t deadtimeNeg;
    ${prefix}_mode_t mode;
    bool isRunning;
    uint32_t fsw;
    uint32_t clockFreq;
} ${name}_config_t;

extern ${name}_config_t ${name}_config;

"""))
        self.prototypesTemplate  = Template(keywords.get('prototypes', """/* $title Function Prototypes */
void ${name}_init(void);
void ${name}_startAll(void);
void ${name}_stopAll(void);
void ${name}_setFsw(uint32_t fsw);
void ${name}_setDuty(modulator_phase_t phase, float duty);
void ${name}_setDeadtime(uint8_t deadtime);
void ${name}_setDeadtimeNeg(uint32_t deadtime);
void ${name}_setDeadtimePos(uint32_t deadtime);
void ${name}_setMode(${prefix}_mode_t mode);
void ${name}_setCurrent(float current);

$controllers
"""))
        self.controllerProtoTemplate = Template(keywords.get('controllerProto', '$attribute\nvoid ${name}_${phase}_Controller(void);\n'))

        self.sourceTemplate      = Template(keywords.get('source', """/*
 * $base - Generated Source File
 * Generated: $timestamp
 */

#include "$base.h"
#include <math.h>

/* Static helper functions */
$forwards
$instances$inits$controls$interrupts"""))
        self.forwardTemplate     = Template(keywords.get('forward', """static inline void ${name}_init_DMA_ISR(void);
static inline void ${name}_updatePhaseShift(void);
"""))
        self.instanceTemplate    = Template(keywords.get('instance', """/* $title Configuration Instance */
${name}_config_t ${name}_config = {.Kp = 1.0f};

"""))
        self.initTemplate        = Template(keywords.get('init', """/*
 * Initialize $title configuration
 * Sets the interrupt handler called by the ADC interrupt.
 */
void ${name}_init(void)
{
    ${name}_config.deadtimePos = 20;
    ${name}_config.deadtimeNeg = 20;
    ${name}_config.${name}.duty = $duty;
    ${name}_config.fsw = $fsw;

    ${name}_config.clockFreq = Cy_SysClk_ClkHfGetFrequency(3);
    ${name}_config.${name}.compareValueOffset = 0;

$pwmInit
    // Set up the kill input
$kill
    // Setup swap functionality for variable fsw
$swap
    // Setup start trigger for synchronized operation
$start
    ${name}_setFsw(${name}_config.fsw);
    ${name}_updatePhaseShift();
    ${name}_init_DMA_ISR();
    ${name}_setMode(${prefix}_openLoop);
    ${name}_setDeadtimePos(${name}_config.deadtimePos);
    ${name}_setDeadtimeNeg(${name}_config.deadtimeNeg);
}

"""))
        self.pwmInitTemplate     = Template(keywords.get('pwmInit', """    Cy_TCPWM_PWM_Init(${pwm}_HW, ${pwm}_NUM, &${pwm}_config);
    Cy_TCPWM_PWM_Enable(${pwm}_HW, ${pwm}_NUM);
"""))
        self.triggerTemplate     = Template(keywords.get('trigger', '    Cy_TCPWM_InputTriggerSetup(${pwm}_HW, ${pwm}_NUM, $input, CY_TCPWM_INPUT_RISINGEDGE, CY_TCPWM_INPUT_TRIG($trig));\n'))
        self.runTemplate         = Template(keywords.get('run', """/*
 * Start $title
 */
void ${name}_startAll(void)
{
    Cy_TrigMux_SwTrigger(TRIG_OUT_MUX_10_TCPWM0_TR_IN4, CY_TRIGGER_TWO_CYCLES);
    Cy_TrigMux_SwTrigger(TRIG_OUT_MUX_10_TCPWM0_TR_IN5, CY_TRIGGER_DEACTIVATE);
    ${name}_config.isRunning = true;
}

/*
 * Stop $title
 */
void ${name}_stopAll(void)
{
    Cy_TrigMux_SwTrigger(TRIG_OUT_MUX_10_TCPWM0_TR_IN5, CY_TRIGGER_INFINITE);
    ${name}_config.isRunning = false;
}

"""))
        self.fswTemplate         = Template(keywords.get('fsw', """/*
 * Set $title switching frequency
 */
void ${name}_setFsw(uint32_t fsw)
{
    ${name}_config.${name}.period = ${name}_config.clockFreq / (2*fsw); // (2*fsw because of center aligned modulation)
    ${name}_config.fsw = fsw;

$periods
    // When we change the frequency we also need to recalculate the duty cycle
$reapply}

"""))
        self.periodTemplate      = Template(keywords.get('period', '    Cy_TCPWM_PWM_SetPeriod1(${pwm}_HW, ${pwm}_NUM, ${name}_config.${name}.period);\n'))
        self.reapplyTemplate     = Template(keywords.get('reapply', '    ${name}_setDuty($enum, ${name}_config.${name}.duty);\n'))
        self.dutyTemplate        = Template(keywords.get('duty', """/*
 * Set $title duty cycle for specific phase
 */
void ${name}_setDuty(modulator_phase_t phase, float duty)
{
    uint16_t compare;

    if(duty > ${prefix}_MAX_DUTY)
        duty = ${prefix}_MAX_DUTY;
    else if(duty < ${prefix}_MIN_DUTY)
        duty = ${prefix}_MIN_DUTY;

    switch(phase)
    {
$cases    }

    Cy_TrigMux_SwTrigger(TRIG_OUT_MUX_10_TCPWM0_TR_IN6, CY_TRIGGER_TWO_CYCLES);
}

"""))
        self.caseTemplate        = Template(keywords.get('case', """        case $enum:
            ${name}_config.${name}.duty = duty;
            compare = ${name}_config.${name}.period - ${name}_config.${name}.period * duty;
            Cy_TCPWM_PWM_SetCompare0BufVal(${pwm}_HW, ${pwm}_NUM, compare + ${name}_config.${name}.compareValueOffset);
            break;
"""))
        self.deadtimeTemplate    = Template(keywords.get('deadtime', """void ${name}_setDeadtimePos(uint32_t deadtime)
{
$positive    ${name}_config.deadtimePos = deadtime;
}

void ${name}_setDeadtimeNeg(uint32_t deadtime)
{
$negative    ${name}_config.deadtimeNeg = deadtime;
}

void ${name}_setDeadtime(uint8_t deadtime)
{
    ${name}_setDeadtimePos(deadtime);
    ${name}_setDeadtimeNeg(deadtime);
}

"""))
        self.deadtimePosTemplate = Template(keywords.get('deadtimePos', '    Cy_TCPWM_PWM_PWMDeadTime(${pwm}_HW, ${pwm}_NUM, deadtime);\n'))
        self.deadtimeNegTemplate = Template(keywords.get('deadtimeNeg', '    Cy_TCPWM_PWM_PWMDeadTimeN(${pwm}_HW, ${pwm}_NUM, deadtime);\n'))
        self.settersTemplate     = Template(keywords.get('setters', """void ${name}_setMode(${prefix}_mode_t mode)
{
    ${name}_config.mode = mode;
}

void ${name}_setCurrent(float current)
{
    ${name}_config.${name}.Iref = (uint32_t)current;
}

"""))
        self.controllerTemplate  = Template(keywords.get('controller', """/*
 * $title Current Controller Helper Function
 */
static inline void ${name}_CurrentController(modulator_phase_t phase, int32_t err)
{
    float duty;
    float VL;
    float VIN_temp = 1.0f; // TODO: Replace with actual input voltage reading

    VL = err * ${name}_config.Kp;
    if(VIN_temp > 0)
        duty = (VIN_temp + VL) / 400.0f; // TODO: Adjust divisor based on VDC
    else
        duty = 1.0f + (VIN_temp + VL) / 400.0f;

    ${name}_setDuty(phase, duty);
}

"""))
        self.isrTemplate         = Template(keywords.get('isr', """/*
 * $title $phase Controller ISR
 * Function is called by interrupt to control the phase current and flying cap
 * voltage via a simple P controller.
 * Duty cycle is updated at the rate of the PWM.
 */
$attribute
void ${name}_${phase}_Controller(void)
{
    // elapsed_time_start(0); // Uncomment if using performance measurement

    ${name}_config.${name}.currentFilt = moving_average(${prefix}_I_${phase});

    int32_t err = ${name}_config.${name}.Iref - ${name}_config.${name}.currentFilt;
    ${name}_CurrentController($enum, err);
$dmaClear
    // elapsed_time_stop(0); // Uncomment if using performance measurement
}

"""))
        self.dmaClearTemplate    = Template(keywords.get('dmaClear', '    Cy_DMA_Channel_ClearInterrupt(DMA_${phase}_HW, DMA_${phase}_CHANNEL);\n'))
        self.helpersTemplate     = Template(keywords.get('helpers', """/*
 * $title helper function implementations - customize as needed
 */
static inline void ${name}_init_DMA_ISR(void)
{
    // Configure DMA channels for ADC data transfer
    // Set up interrupt priorities and handlers
}

static inline void ${name}_updatePhaseShift(void)
{
    // Set initial phase shifts for synchronized operation
$shifts}

"""))
        self.phaseShiftTemplate  = Template(keywords.get('phaseShift', '    // Set phase shift for ${pwm}: $shift\n'))

    def names(self, modulator):
        """ Substitution values shared by all templates of a modulator """
        return dict(title=modulator.name, name=symbolName(modulator.name), prefix=symbolPrefix(modulator.name))

    def formatPhaseList(self, modulator, template:Template, **keywords):
        """ Apply a template to every active phase of the modulator """
        names = self.names(modulator)
        return ''.join(template.substitute(names, pwm=p.pwm, **keywords) for p in activePhases(modulator))

    # ------------------------------------------------------------------
    # Header file
    # ------------------------------------------------------------------

    def formatPhaseEnum(self, modulators:list):
        """ One enumeration listing the phases of all modulators """
        enums = []
        for m in modulators:
            prefix = symbolPrefix(m.name)
            for p in activePhases(m):
                enums.append(self.phaseEntryTemplate.substitute(enum=phaseEnumName(prefix, p.pwm)))
        if not enums:
            return ''
        return self.phaseEnumTemplate.substitute(enums=',\n'.join(enums))

    def formatAdc(self, modulator):
        names = self.names(modulator)
        defines = ''.join(self.adcDefineTemplate.substitute(names, phase=phaseName(p.pwm)) for p in activePhases(modulator))
        return self.adcTemplate.substitute(names, defines=defines)

    def formatPrototypes(self, modulator):
        names = self.names(modulator)
        controllers = ''
        for p in activePhases(modulator):
            if p.generate_isr:
                controllers += self.controllerProtoTemplate.substitute(names, phase=phaseName(p.pwm), attribute=ISR_ATTRIBUTE)
        return self.prototypesTemplate.substitute(names, controllers=controllers)

    def formatHeader(self, modulators:list, base:str, stamp:str):
        modes = ''.join(self.modeTemplate.substitute(self.names(m)) for m in modulators)
        limits = ''.join(self.limitsTemplate.substitute(self.names(m)) for m in modulators)
        adc = ''.join(self.formatAdc(m) for m in modulators)
        structs = ''.join(self.structsTemplate.substitute(self.names(m)) for m in modulators)
        prototypes = ''.join(self.formatPrototypes(m) for m in modulators)
        return self.headerTemplate.substitute(base=base, timestamp=stamp, guard=base.upper() + '_H',
                                              modes=modes, phases=self.formatPhaseEnum(modulators),
                                              limits=limits, adc=adc, structs=structs, prototypes=prototypes)

    # ------------------------------------------------------------------
    # Source file
    # ------------------------------------------------------------------

    def formatInit(self, modulator):
        names = self.names(modulator)
        trigger = self.triggerTemplate
        return self.initTemplate.substitute(names,
            duty=dutyLiteral(modulator.duty_cycle),
            fsw=fswLiteral(modulator.frequency),
            pwmInit=self.formatPhaseList(modulator, self.pwmInitTemplate),
            kill=self.formatPhaseList(modulator, trigger, input='CY_TCPWM_INPUT_TR_STOP_OR_KILL', trig=5),
            swap=self.formatPhaseList(modulator, trigger, input='CY_TCPWM_INPUT_TR_INDEX_OR_SWAP', trig=6),
            start=self.formatPhaseList(modulator, trigger, input='CY_TCPWM_INPUT_TR_START', trig=4))

    def formatControls(self, modulator):
        names = self.names(modulator)
        phases = activePhases(modulator)
        # a frequency change re-applies the duty cycle through the first active phase only
        reapply = ''
        if phases:
            reapply = self.reapplyTemplate.substitute(names, enum=phaseEnumName(names['prefix'], phases[0].pwm))
        cases = ''.join(self.caseTemplate.substitute(names, pwm=p.pwm, enum=phaseEnumName(names['prefix'], p.pwm)) for p in phases)
        return (self.runTemplate.substitute(names)
            + self.fswTemplate.substitute(names, periods=self.formatPhaseList(modulator, self.periodTemplate), reapply=reapply)
            + self.dutyTemplate.substitute(names, cases=cases)
            + self.deadtimeTemplate.substitute(names,
                positive=self.formatPhaseList(modulator, self.deadtimePosTemplate),
                negative=self.formatPhaseList(modulator, self.deadtimeNegTemplate))
            + self.settersTemplate.substitute(names))

    def formatInterrupts(self, modulator):
        names = self.names(modulator)
        txt = self.controllerTemplate.substitute(names)
        for p in activePhases(modulator):
            if not p.generate_isr:
                continue
            phase = phaseName(p.pwm)
            dmaClear = self.dmaClearTemplate.substitute(phase=phase) if p.trigger_adc else ''
            txt += self.isrTemplate.substitute(names, phase=phase, attribute=ISR_ATTRIBUTE,
                                               enum=phaseEnumName(names['prefix'], p.pwm), dmaClear=dmaClear)
        shifts = ''.join(self.phaseShiftTemplate.substitute(pwm=p.pwm, shift=p.phase_shift)
                         for p in activePhases(modulator) if p.phase_shift)
        return txt + self.helpersTemplate.substitute(names, shifts=shifts)

    def formatSource(self, modulators:list, base:str, stamp:str):
        return self.sourceTemplate.substitute(base=base, timestamp=stamp,
            forwards=''.join(self.forwardTemplate.substitute(self.names(m)) for m in modulators),
            instances=''.join(self.instanceTemplate.substitute(self.names(m)) for m in modulators),
            inits=''.join(self.formatInit(m) for m in modulators),
            controls=''.join(self.formatControls(m) for m in modulators),
            interrupts=''.join(self.formatInterrupts(m) for m in modulators))


def generateHeader(modulators:list, clock=datetime.now, formatter:ModulatorFormatter=None):
    fmt = formatter or ModulatorFormatter()
    return fmt.formatHeader(modulators, baseName(modulators), timestamp(clock))

def generateSource(modulators:list, clock=datetime.now, formatter:ModulatorFormatter=None):
    fmt = formatter or ModulatorFormatter()
    return fmt.formatSource(modulators, baseName(modulators), timestamp(clock))

def generate(modulators:list, clock=datetime.now, formatter:ModulatorFormatter=None):
    """ Generate the header/source pair for the modulators.

    Returns a GenerationResult; on failure its text fields are empty and
    the error message is the text of the exception.
    """
    try:
        fmt = formatter or ModulatorFormatter()
        base = baseName(modulators)
        stamp = timestamp(clock)
        result = GenerationResult(
            header=fmt.formatHeader(modulators, base, stamp),
            source=fmt.formatSource(modulators, base, stamp),
            header_file_name=f'{base}.h',
            source_file_name=f'{base}.c',
            success=True)
    except Exception as e:
        log.debug("modulator code generation failed", exc_info=True)
        return GenerationResult.failure(str(e))
    log.debug("generated %s for %d modulators", result.header_file_name, len(modulators))
    return result
