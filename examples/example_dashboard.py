"""Example usage of the controllers against a simulated robot."""
import argparse
import time

from robodash.clients import MockRobotClient, RobotClient, shared_client, shutdown
from robodash.controllers import (
    ArmController, NavigationController, SensorMonitor, SlamController, TeleopController, TopicBrowser,
)


def main():
    parser = argparse.ArgumentParser(description="robodash walkthrough")
    parser.add_argument("--url", help="rosbridge URL; a simulated robot is used when omitted")
    args = parser.parse_args()

    print("=" * 60)
    print("robodash example")
    print("=" * 60)

    if args.url:
        client = shared_client(args.url, factory=RobotClient)
        print(f"\n1. Connecting to {args.url}...")
        if not client.connect(timeout=10.0):
            print(f"✗ Could not connect: {client.last_error}")
            shutdown()
            return
    else:
        print("\n1. Starting simulated robot...")
        client = shared_client("ws://localhost:9090", config={"simulate": True}, factory=MockRobotClient)
    client.add_state_listener(lambda old, new: print(f"  connection: {old.value} -> {new.value}"))
    print(f"✓ Connected: {client.connection_info()}")

    sensors = SensorMonitor(client)
    arm = ArmController(client)
    sensors.start()
    arm.start()
    time.sleep(1.0)

    print("\n2. Sensors")
    print(f"  {sensors.summary()}")

    print("\n3. Arm presets")
    for preset in ("ready", "extended", "home"):
        angles = arm.apply_preset(preset)
        print(f"  {preset}: " + ", ".join(f"{k}={v:.2f}" for k, v in angles.items()))
        time.sleep(0.2)

    print("\n4. Teleop: forward for one second")
    with TeleopController(client, linear_speed=0.3) as teleop:
        teleop.start("forward")
        time.sleep(1.0)

    print("\n5. SLAM session")
    with SlamController(client) as slam:
        try:
            slam.start_mapping()
            time.sleep(1.0)
            print(f"  robot at {slam.display_position()}")
            slam.stop_mapping()
            slam.save_map()
            print("✓ Map saved")
        except (RuntimeError, TimeoutError) as e:
            print(f"✗ SLAM failed: {e}")

    print("\n6. Navigation")
    with NavigationController(client) as nav:
        try:
            nav.navigate_to(1.0, 0.5, 0.0)
            print(f"  goal: {nav.active_goal}")
            nav.cancel()
        except (RuntimeError, TimeoutError) as e:
            print(f"✗ Navigation failed: {e}")

    print("\n7. Topics")
    browser = TopicBrowser(client)
    for name in browser.list_topics():
        print(f"  {name}")

    sensors.stop()
    arm.stop()
    shutdown()
    print("\nDone.")


if __name__ == "__main__":
    main()
