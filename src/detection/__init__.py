"""
Vehicle Detection Module

This module handles vehicle detection in traffic-camera frames.
"""

from .background import BackgroundModel, GaussianMixtureModel, Mog2Model, create_background_model
from .base import Detector
from .bgsub_detector import BgSubDetector
from .geometry import GeometricFilter, ShapeDescriptors
from .vehicle import DetectionResult, VehicleDetector

__all__ = [
    'BackgroundModel',
    'GaussianMixtureModel',
    'Mog2Model',
    'create_background_model',
    'Detector',
    'BgSubDetector',
    'GeometricFilter',
    'ShapeDescriptors',
    'DetectionResult',
    'VehicleDetector',
]
