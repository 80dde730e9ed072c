"""
Question categories used by the bank and by the CASA flight planning syllabus.
"""
from typing import Dict, Tuple

# Categories carried by bank questions; every breakdown reports all of them.
QUESTION_CATEGORIES: Dict[str, str] = {
    "performance": "Aircraft Performance",
    "navigation": "Navigation & Flight Planning",
    "fuel_planning": "Fuel Planning",
    "weight_balance": "Weight & Balance",
    "meteorology": "Meteorology",
    "flight_planning": "Flight Planning Procedures",
}

# CASA ATPL flight planning syllabus topics (trial exam topic filters accept these too).
SYLLABUS_TOPICS: Tuple[str, ...] = (
    "payload_uplift_capability",
    "mtow_brw_calculations",
    "sector_fuel_burn_normal_cruise",
    "trip_fuel_total_flight_plan",
    "alternate_holding_fuel",
    "final_reserve_variable_reserve_fuel",
    "total_fuel_required_ramp_fuel",
    "fuel_dumping_time_quantity",
    "rate_of_climb_roc",
    "climb_fuel_distance_time_altitude",
    "intermediate_level_change_cruise_climb",
    "selection_cruise_schedules_altitude",
    "inflight_epr_limitations",
    "maximum_tat_limitations",
    "ias_mach_number_conversion",
    "tas_groundspeed_calculations",
    "descent_point_planning",
    "inflight_replanning_holding",
    "pnr_1_inop_return_departure",
    "pnr_1_inop_return_alternate",
    "cp_1_inop_equi_time_point",
    "pnr_depressurised",
    "cp_depressurised",
    "engine_out_drift_down_altitude",
    "engine_out_fuel_flow_tas",
    "buffet_boundaries_margins",
    "maximum_altitude_capability_normal_ops",
    "maximum_altitude_capability_engine_out",
    "abnormal_configuration_gear_down_performance",
    "abnormal_configuration_system_failures",
)


def format_category_name(category: str) -> str:
    """Display name, e.g. 'fuel_planning' -> 'Fuel Planning', 'rate_of_climb_roc' -> 'Rate Of Climb Roc'."""
    if category in QUESTION_CATEGORIES:
        return QUESTION_CATEGORIES[category]
    return category.replace("_", " ").strip().title()
