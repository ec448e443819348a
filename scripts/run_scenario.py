from __future__ import annotations

import argparse
import logging
from typing import Tuple

import numpy as np

from dwa_planner import DWAConfig, DWAController, Pose2D, Trajectory, Velocity2D
from dwa_planner.controllers import LocalPlanner
from dwa_planner.maps import SCENARIOS, ScenarioConfig, create_scenario
from dwa_planner.planning.trajectory_generator import compute_new_positions
from dwa_planner.utils import load_config_dict


def run_cycle(planner: LocalPlanner, pose: Pose2D, vel: Velocity2D, footprint) -> Tuple[Trajectory, Velocity2D]:
    planner.update_plan_and_local_costs(pose, None, footprint)
    return planner.find_best_path(pose, vel)


def main():
    parser = argparse.ArgumentParser(
        description="Run the local planner for a few control cycles on a synthetic scenario"
    )
    parser.add_argument("--config", type=str, default="configs/dwa.yaml")
    parser.add_argument("--scenario", type=str, default="open", choices=SCENARIOS)
    parser.add_argument("--cycles", type=int, default=20)
    parser.add_argument(
        "--set",
        dest="overrides",
        action="append",
        default=[],
        help="OmegaConf dotlist override, e.g. dwa.weights.occdist_scale=0.1",
    )
    parser.add_argument("--verbose", action="store_true")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    raw = load_config_dict(args.config, args.overrides)
    config = DWAConfig.from_dict(raw.get("dwa", raw))
    scenario = create_scenario(args.scenario, ScenarioConfig(**(raw.get("scenario") or {})))

    controller = DWAController(scenario.grid, config)
    controller.set_plan(scenario.plan)
    pose = scenario.start
    vel = Velocity2D()
    dt = controller.sim_period

    print(f"[RUN] scenario={scenario.name} grid={scenario.grid.size_x}x{scenario.grid.size_y} dt={dt:.3f}")
    for k in range(int(args.cycles)):
        traj, cmd = run_cycle(controller, pose, vel, scenario.footprint)
        print(
            f"[{k:03d}] pose=({pose.x:.3f}, {pose.y:.3f}, {pose.theta:.3f}) "
            f"cmd=({cmd.vx:.3f}, {cmd.vy:.3f}, {cmd.vtheta:.3f}) cost={traj.cost:.3f}"
        )
        if not traj.is_valid:
            print("[RUN] no valid trajectory, stopping")
            break
        nxt = compute_new_positions(pose.as_array(), cmd.as_array(), dt)
        pose = Pose2D(float(nxt[0]), float(nxt[1]), float(nxt[2]))
        vel = cmd

    gx, gy = scenario.plan[-1, 0], scenario.plan[-1, 1]
    print("[RUN] final distance to goal=", float(np.hypot(gx - pose.x, gy - pose.y)))
    controller.shutdown()


if __name__ == "__main__":
    main()
