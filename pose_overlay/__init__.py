"""
Pose Overlay.

Runs a pretrained pose-estimation model over a video source and draws the
detected keypoints, skeleton and joint angles on top of each frame.

Modules are imported on-demand to avoid loading heavy dependencies.
"""

__version__ = "0.1.0"
__author__ = "Your Name"
