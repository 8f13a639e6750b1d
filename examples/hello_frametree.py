import math
import time

import numpy as np

import frametree
from frametree import Header, Pose, Time, TransformLink, TransformStamped


def _yaw_quat(yaw: float) -> tuple[float, float, float, float]:
    return 0.0, 0.0, math.sin(yaw / 2.0), math.cos(yaw / 2.0)


def main() -> None:
    server = frametree.run(port=57794)
    client = server.as_client() if isinstance(server, frametree.FrameTreeServer) else server

    client.set_static_links(
        [TransformLink(parent="base_link", child="camera", transform=Pose(translation=(0.2, 0.0, 0.5)))]
    )
    client.reset()

    # A robot driving a unit circle around the map origin, one pose per second.
    transforms = []
    for sec in range(0, 21):
        yaw = 2.0 * math.pi * sec / 20.0
        transforms.append(
            TransformStamped(
                header=Header(stamp=Time(sec, 0), frame_id="map"),
                child_frame_id="base_link",
                transform=Pose(translation=(math.cos(yaw), math.sin(yaw), 0.0), rotation=_yaw_quat(yaw + math.pi / 2.0)),
            )
        )
    client.send_transforms(transforms)

    # Halfway between two samples: translation is lerped, rotation slerped.
    pose = client.lookup_transform(Time(2, 500_000_000), "map", "camera")
    if pose is None:
        print("camera not resolvable in map")
    else:
        points_in_camera = np.asarray([[1.0, 0.0, 0.0], [0.0, 0.0, 1.0]], dtype=np.float64)
        print("camera in map:", pose)
        print("points in map:", pose.transform_points(points_in_camera))

    for frame in client.list_frames():
        print(frame["name"], frame["sampleCount"], frame["parent"])

    try:
        while True:
            time.sleep(3600)
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
