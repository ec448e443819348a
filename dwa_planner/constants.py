from __future__ import annotations

# Occupancy cost values (one byte per cell)
FREE_SPACE: int = 0
INSCRIBED_INFLATED_OBSTACLE: int = 253
LETHAL_OBSTACLE: int = 254
NO_INFORMATION: int = 255
MAX_NON_OBSTACLE: int = 252

# Core robot limits
MAX_VEL_TRANS_MPS: float = 0.55
MIN_VEL_TRANS_MPS: float = 0.1
MAX_VEL_X_MPS: float = 0.55
MIN_VEL_X_MPS: float = 0.0
MAX_VEL_Y_MPS: float = 0.1
MIN_VEL_Y_MPS: float = -0.1
MAX_VEL_THETA_RPS: float = 1.0
MIN_VEL_THETA_RPS: float = 0.4
ACC_LIM_X_MPS2: float = 2.5
ACC_LIM_Y_MPS2: float = 2.5
ACC_LIM_THETA_RPS2: float = 3.2

# Forward simulation
SIM_TIME_S: float = 1.7
SIM_GRANULARITY_M: float = 0.025
ANGULAR_SIM_GRANULARITY_RAD: float = 0.1
CONTROLLER_FREQUENCY_HZ: float = 20.0
VX_SAMPLES: int = 3
VY_SAMPLES: int = 10
VTH_SAMPLES: int = 20

# Scoring
PATH_DISTANCE_BIAS: float = 32.0
GOAL_DISTANCE_BIAS: float = 24.0
OCCDIST_SCALE: float = 0.01
TWIRLING_SCALE: float = 0.0
FORWARD_POINT_DISTANCE_M: float = 0.325
STOP_TIME_BUFFER_S: float = 0.2
OSCILLATION_RESET_DIST_M: float = 0.05
OSCILLATION_RESET_ANGLE_RAD: float = 0.2
SCALING_SPEED_MPS: float = 0.25
MAX_SCALING_FACTOR: float = 0.2
CHEAT_FACTOR: float = 1.0

# Plan pruning: drop leading plan poses farther than this from the robot
PRUNE_DISTANCE_M: float = 1.0
