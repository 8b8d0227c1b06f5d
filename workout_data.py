"""Built-in catalog, default splits and workout generation."""

from __future__ import annotations

from typing import Iterable, List

from models import Day, Lift, LiftHistoryRecord, Split, UserData, Workout, WorkoutState

INITIAL_SPLIT_ID = "push_pull_legs"
DEFAULT_ICON = "ri-dumbbell-line"

_DEFAULT_LIFTS = [
    ("shoulder_press", "Shoulder press", 45, 5, "ri-basketball-line"),
    ("chest_press", "Chest press", 95, 5, "ri-boxing-line"),
    ("bench_press", "Bench press", 135, 5, "ri-boxing-line"),
    ("incline_bench_press", "Incline bench press", 95, 5, "ri-boxing-line"),
    ("db_lateral_raises", "DB lateral raises", 15, 2.5, "ri-arrow-left-right-line"),
    ("cable_lateral_raises", "Cable lateral raises", 10, 2.5, "ri-arrow-left-right-line"),
    ("rear_delt_cable_flies", "Rear delt cable flies", 15, 2.5, "ri-refresh-line"),
    ("rear_delt_machine_flies", "Rear delt machine flies", 70, 5, "ri-refresh-line"),
    ("tricep_extension_lean_out", "Tricep extension lean out", 15, 2.5, "ri-hand-coin-line"),
    ("tricep_extension_overhead", "Tricep extension overhead", 15, 2.5, "ri-hand-coin-line"),
    ("tricep_bar_pushdown", "Tricep bar pushdown", 40, 5, "ri-arrow-down-line"),
    ("tricep_rope_pushdown", "Tricep rope pushdown", 35, 5, "ri-arrow-down-line"),
    ("tricep_triangle_pushdown", "Tricep triangle pushdown", 35, 5, "ri-arrow-down-line"),
    ("preacher_curl", "Preacher curl", 45, 5, "ri-contrast-2-line"),
    ("standing_curl", "Standing curl", 20, 2.5, "ri-contrast-2-line"),
    ("incline_bench_curl", "Incline bench curl", 20, 2.5, "ri-contrast-2-line"),
    ("hammer_curl", "Hammer curl", 20, 2.5, "ri-contrast-2-line"),
    ("leg_extension", "Leg extension", 90, 10, "ri-walk-line"),
    ("squat", "Squat", 135, 10, "ri-walk-line"),
    ("leg_press", "Leg press", 180, 10, "ri-walk-line"),
    ("hamstring_curl", "Hamstring curl", 70, 5, "ri-walk-line"),
    ("rdl", "RDL", 135, 10, "ri-walk-line"),
    ("deadlift", "Deadlift", 185, 10, "ri-walk-line"),
    ("calf_raise_dbs", "Calf raise with DBs", 40, 5, "ri-footprint-line"),
    ("calf_raise_outstretched", "Calf raise (outstretched legs)", 90, 5, "ri-footprint-line"),
    ("calf_raise_seated", "Calf raise (seated)", 80, 5, "ri-footprint-line"),
    ("calf_raise_standing", "Calf raise (standing)", 100, 5, "ri-footprint-line"),
    ("lat_pulldown", "Lat pulldown", 100, 10, "ri-arrow-down-line"),
    ("cable_row", "Cable row", 90, 10, "ri-arrow-right-line"),
    ("machine_row", "Machine row", 90, 10, "ri-arrow-right-line"),
    ("machine_lat_pulldown", "Machine lat pulldown", 90, 10, "ri-arrow-down-line"),
    ("trap_shrugs", "Trap shrugs", 50, 5, "ri-arrow-up-line"),
]

# Day lift lists may name lifts that are not in the catalog; those slots
# generate no workout.
_DEFAULT_SPLITS = [
    (
        "push_pull_legs",
        "Push Pull Legs",
        [
            ("Push", ["bench_press", "shoulder_press", "tricep_pushdown"]),
            ("Pull", ["lat_pulldown", "cable_row", "bicep_curl"]),
            ("Legs", ["squat", "hamstring_curl", "calf_raise_standing"]),
        ],
    ),
    (
        "upper_lower",
        "Upper Lower",
        [
            (
                "Upper",
                ["bench_press", "lat_pulldown", "shoulder_press", "cable_row", "tricep_pushdown", "bicep_curl"],
            ),
            (
                "Lower",
                ["squat", "rdl", "leg_extension", "hamstring_curl", "calf_raise_standing", "calf_raise_seated"],
            ),
        ],
    ),
    (
        "full_body",
        "Full Body",
        [
            (
                "Full Body",
                [
                    "bench_press",
                    "squat",
                    "lat_pulldown",
                    "leg_press",
                    "shoulder_press",
                    "bicep_curl",
                    "tricep_pushdown",
                    "calf_raise_standing",
                ],
            ),
        ],
    ),
]

_ICON_KEYWORDS = [
    (("bench", "chest", "push"), "ri-boxing-line"),
    (("shoulder", "press"), "ri-basketball-line"),
    (("tricep",), "ri-hand-coin-line"),
    (("lateral",), "ri-arrow-left-right-line"),
    (("delt", "rear"), "ri-refresh-line"),
    (("curl", "bicep"), "ri-contrast-2-line"),
    (("pull",), "ri-arrow-up-line"),
    (("row",), "ri-arrow-right-line"),
    (("down",), "ri-arrow-down-line"),
    (("leg", "squat", "deadlift"), "ri-walk-line"),
    (("calf",), "ri-footprint-line"),
    (("trap", "shrug"), "ri-arrow-up-line"),
]


def default_lifts() -> List[Lift]:
    return [
        Lift(id=i, name=n, default_weight=w, weight_increment=inc, icon=icon)
        for i, n, w, inc, icon in _DEFAULT_LIFTS
    ]


def default_lift_ids() -> List[str]:
    return [row[0] for row in _DEFAULT_LIFTS]


def default_splits() -> List[Split]:
    return [
        Split(id=sid, name=name, days=[Day(name=d, lifts=list(l)) for d, l in days])
        for sid, name, days in _DEFAULT_SPLITS
    ]


def icon_for_lift(name: str) -> str:
    """Pick an icon for a lift that has none, by keyword in its name."""
    lowered = name.lower()
    for keywords, icon in _ICON_KEYWORDS:
        if any(k in lowered for k in keywords):
            return icon
    return DEFAULT_ICON


def create_empty_lift_history(lifts: Iterable[Lift] | None = None) -> dict[str, List[LiftHistoryRecord]]:
    source = default_lifts() if lifts is None else lifts
    return {lift.id: [] for lift in source}


def default_user_data() -> UserData:
    return UserData(
        lifts=default_lifts(),
        splits=default_splits(),
        lift_history=create_empty_lift_history(),
        workout_state=WorkoutState(current_split_id=INITIAL_SPLIT_ID),
    )


def workout_id_for(split_id: str, day_index: int, position: int) -> str:
    return f"{split_id}_{day_index}_{position}"


def generate_workouts_from_split(
    split: Split,
    day_index: int,
    lifts: Iterable[Lift],
    *,
    default_sets: int = 3,
    default_reps: int = 8,
    rep_range: str = "8-12 reps",
) -> List[Workout]:
    """Project one day of ``split`` onto the catalog.

    Ids are positional so the same slot keeps its key across reads, and
    a lift id missing from the catalog still consumes its position.
    """
    if day_index < 0 or day_index >= len(split.days):
        return []
    by_id = {lift.id: lift for lift in lifts}
    workouts: List[Workout] = []
    for position, lift_id in enumerate(split.days[day_index].lifts):
        lift = by_id.get(lift_id)
        if lift is None:
            continue
        workouts.append(
            Workout(
                id=workout_id_for(split.id, day_index, position),
                lift_id=lift.id,
                name=lift.name,
                default_weight=lift.default_weight,
                default_sets=default_sets,
                default_reps=lift.reps_or(default_reps),
                rep_range=rep_range,
                weight_increment=lift.weight_increment,
                order=position,
            )
        )
    return workouts
