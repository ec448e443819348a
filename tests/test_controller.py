import threading

import numpy as np
import pytest

from dwa_planner import (
    ControllerState,
    CostWeights,
    DWAConfig,
    DWAController,
    InvalidConfiguration,
    PlannerLimits,
    SamplerConfig,
    Velocity2D,
)
from dwa_planner.constants import LETHAL_OBSTACLE
from dwa_planner.critics import INVALID
from dwa_planner.maps import create_scenario


def _config(**weights) -> DWAConfig:
    return DWAConfig(
        limits=PlannerLimits(max_vel_y=0.0, min_vel_y=0.0),
        sampler=SamplerConfig(vx_samples=6, vy_samples=1, vth_samples=11),
        weights=CostWeights(**weights),
    )


def _cycle(controller: DWAController, sc, velocity=Velocity2D()):
    controller.update_plan_and_local_costs(sc.start, footprint=sc.footprint)
    return controller.find_best_path(sc.start, velocity)


def test_open_space_drives_straight_at_full_speed() -> None:
    sc = create_scenario("open")
    controller = DWAController(sc.grid, _config())
    controller.set_plan(sc.plan)
    traj, cmd = _cycle(controller, sc)

    assert traj.is_valid
    assert cmd.vx == pytest.approx(0.55)
    assert cmd.vy == 0.0
    assert abs(cmd.vtheta) < 1e-6
    assert controller.state is ControllerState.COMMAND_READY
    assert controller.last_trajectory is traj


def test_obstacle_ahead_rejects_forward_only_samples() -> None:
    sc = create_scenario("blocked")
    controller = DWAController(sc.grid, _config())
    controller.keep_explored = True
    controller.set_plan(sc.plan)
    traj, cmd = _cycle(controller, sc)

    forward = [t for t in controller.explored if t.velocity.vx > 0.0 and abs(t.velocity.vtheta) < 1e-9]
    assert forward
    assert all(t.rejected_by == "obstacle" for t in forward)

    assert traj.is_valid
    assert abs(cmd.vtheta) > 0.0 or cmd == Velocity2D()


def test_goal_at_robot_prefers_braking() -> None:
    sc = create_scenario("at_goal")
    controller = DWAController(sc.grid, _config())
    controller.set_plan(sc.plan)
    traj, cmd = _cycle(controller, sc)

    assert traj.is_valid
    assert cmd == Velocity2D()
    assert controller.goal_costs.score(traj) == 0.0
    # Within forward_point_distance of the goal the alignment term is off
    assert controller.alignment_costs.scale == 0.0


def test_all_blocked_returns_negative_cost_and_stop() -> None:
    sc = create_scenario("open")
    # Surround the robot with lethal cells so every footprint touches one
    cx, cy = sc.grid.world_to_map(sc.start.x, sc.start.y)
    sc.grid.costs[cy - 4 : cy + 5, cx - 5 : cx + 6] = LETHAL_OBSTACLE
    controller = DWAController(sc.grid, _config())
    controller.set_plan(sc.plan)
    traj, cmd = _cycle(controller, sc)

    assert traj.cost < 0.0
    assert cmd == Velocity2D()


def test_reconfigure_changes_only_total_cost_column() -> None:
    sc = create_scenario("open")
    cx, cy = 30, 45
    sc.grid.set_cost(cx, cy, 100)
    controller = DWAController(sc.grid, _config())
    controller.set_plan(sc.plan)
    _cycle(controller, sc)
    before = controller.get_cell_costs(cx, cy)
    assert before.traversable
    assert before.occ_cost == 100.0

    controller.update_weights(occdist_scale=0.5)
    # Published but not yet applied: the snapshot changes at the next cycle
    assert controller.get_cell_costs(cx, cy).total_cost == before.total_cost

    _cycle(controller, sc)
    after = controller.get_cell_costs(cx, cy)
    assert after.path_cost == before.path_cost
    assert after.goal_cost == before.goal_cost
    assert after.occ_cost == before.occ_cost
    assert after.total_cost - before.total_cost == pytest.approx((0.5 - 0.01) * 100.0)
    assert controller.obstacle_costs.scale == 0.5


def test_reconfigure_from_another_thread() -> None:
    sc = create_scenario("open")
    controller = DWAController(sc.grid, _config())
    controller.set_plan(sc.plan)
    new = _config(occdist_scale=0.2, twirling_scale=0.1)

    worker = threading.Thread(target=controller.reconfigure, args=(new,))
    worker.start()
    worker.join()
    assert controller.config is new
    traj, _ = _cycle(controller, sc)
    assert traj.is_valid
    assert controller.twirling_costs.scale == 0.1

    controller.reconfigure({"weights": {"goal_distance_bias": 12.0}})
    _cycle(controller, sc)
    assert controller.goal_costs.scale == pytest.approx(0.05 * 12.0)
    with pytest.raises(InvalidConfiguration):
        controller.reconfigure({"sim_time": -1.0})


def test_cell_costs_for_obstacles_and_before_scoring() -> None:
    sc = create_scenario("blocked")
    controller = DWAController(sc.grid, _config())
    with pytest.raises(RuntimeError):
        controller.get_cell_costs(0, 0)

    controller.set_plan(sc.plan)
    _cycle(controller, sc)
    cy, cx = np.argwhere(sc.grid.costs == LETHAL_OBSTACLE)[0]
    cell = controller.get_cell_costs(int(cx), int(cy))
    assert not cell.traversable
    assert cell.total_cost == INVALID


def test_check_trajectory_single_sample() -> None:
    open_sc = create_scenario("open")
    controller = DWAController(open_sc.grid, _config())
    controller.set_plan(open_sc.plan)
    controller.update_plan_and_local_costs(open_sc.start, footprint=open_sc.footprint)
    assert controller.check_trajectory(open_sc.start, Velocity2D(), Velocity2D(0.3, 0.0, 0.0))
    # Above max_vel_trans
    assert not controller.check_trajectory(open_sc.start, Velocity2D(), Velocity2D(1.0, 0.0, 0.0))

    blocked = create_scenario("blocked")
    controller = DWAController(blocked.grid, _config())
    controller.set_plan(blocked.plan)
    controller.update_plan_and_local_costs(blocked.start, footprint=blocked.footprint)
    assert not controller.check_trajectory(blocked.start, Velocity2D(), Velocity2D(0.3, 0.0, 0.0))


def test_oscillation_blocks_immediate_reversal() -> None:
    sc = create_scenario("open")
    config = DWAConfig(
        limits=PlannerLimits(max_vel_y=0.0, min_vel_y=0.0, min_vel_x=-0.2),
        sampler=SamplerConfig(vx_samples=6, vy_samples=1, vth_samples=11),
    )
    controller = DWAController(sc.grid, config)
    controller.set_plan(sc.plan)
    _, cmd = _cycle(controller, sc)
    assert cmd.vx > 0.0
    assert controller.oscillation.signs[0] == 1

    # Same pose next cycle: reversing is now an oscillation
    controller.keep_explored = True
    _cycle(controller, sc, cmd)
    reverse = [t for t in controller.explored if t.velocity.vx < 0.0]
    assert reverse
    assert all(t.rejected_by == "oscillation" for t in reverse)


def test_empty_plan_rejected_without_state_change() -> None:
    sc = create_scenario("open")
    controller = DWAController(sc.grid, _config())
    with pytest.raises(InvalidConfiguration):
        controller.set_plan([])
    assert controller.state is ControllerState.IDLE
    with pytest.raises(InvalidConfiguration):
        controller.find_best_path(sc.start, Velocity2D())

    controller.set_plan(sc.plan)
    assert controller.state is ControllerState.PLAN_SET
    controller.shutdown()
    assert controller.state is ControllerState.IDLE


def test_zero_obstacle_weight_still_rejects_collisions() -> None:
    sc = create_scenario("open")
    # Off the centreline but inside the footprint's swept band
    cx, cy = sc.grid.world_to_map(sc.start.x + 0.3, sc.start.y + 0.1)
    sc.grid.set_cost(cx, cy, LETHAL_OBSTACLE)
    controller = DWAController(sc.grid, _config(occdist_scale=0.0))
    controller.keep_explored = True
    controller.set_plan(sc.plan)
    traj, _ = _cycle(controller, sc)

    forward = [t for t in controller.explored if t.velocity.vx > 0.0 and abs(t.velocity.vtheta) < 1e-9]
    assert forward
    assert all(t.rejected_by == "obstacle" for t in forward)
    assert traj.is_valid
    assert controller.obstacle_costs.score(traj) >= 0.0


def test_weights_published_mid_cycle_wait_for_next_cycle() -> None:
    sc = create_scenario("open")
    controller = DWAController(sc.grid, _config())
    controller.set_plan(sc.plan)
    controller.update_plan_and_local_costs(sc.start, footprint=sc.footprint)
    controller.update_weights(forward_point_distance=1.0)
    traj, _ = controller.find_best_path(sc.start, Velocity2D())

    assert traj.is_valid
    assert controller.goal_front_costs.x_shift == pytest.approx(0.325)
    assert controller.alignment_costs.x_shift == pytest.approx(0.325)
    assert controller.config.weights.forward_point_distance == 1.0

    _cycle(controller, sc)
    assert controller.goal_front_costs.x_shift == pytest.approx(1.0)


def test_cell_costs_outside_grid_rejected() -> None:
    sc = create_scenario("open")
    controller = DWAController(sc.grid, _config())
    controller.set_plan(sc.plan)
    _cycle(controller, sc)
    with pytest.raises(InvalidConfiguration):
        controller.get_cell_costs(-1, 0)
    with pytest.raises(InvalidConfiguration):
        controller.get_cell_costs(0, sc.grid.size_y)
