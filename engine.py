"""Pure exam constants: pass mark, mark values, trial-exam shape, practice table tolerances. No UI."""
# CASA pass mark is inclusive: percentage >= 70 passes.
# ETAS is computed for every drift angle; the 5 deg figure is guidance for question authors only.

PASS_THRESHOLD_PERCENT = 70
MARK_VALUES = (1, 2, 3, 4, 5)
TRIAL_EXAM_QUESTION_COUNT = 17
TRIAL_EXAM_TIME_LIMIT_MINUTES = 180
PRACTICE_TOLERANCE = 2
ETAS_SIGNIFICANT_DRIFT_DEG = 5
ISA_PRACTICE_TOLERANCE = 0
# ISA practice table rule of thumb: 2 C per 1000 ft from 15 C at sea level.
ISA_PRACTICE_LAPSE_RATE_C_PER_1000FT = 2
