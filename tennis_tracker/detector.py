"""
Detection backends.

Every backend exposes the same call:

    detect(image: bytes, min_confidence: float | None) -> List[Detection]

and raises `InferenceError` when it cannot answer. The tracker treats that
as "nothing seen this frame"; it never aborts a session.
"""
from __future__ import annotations
import base64
from typing import Any, Dict, List, Optional, Tuple

import cv2
import numpy as np
import requests

from .models.detection import Detection, DetectionClass, InvalidDetection, UnknownLabel
from .errors import InferenceError
from . import config


def parse_predictions(
    payload: Any,
    min_confidence: float = 0.0,
) -> Tuple[List[Detection], int]:
    """
    Validate a `{"predictions": [...]}` payload.

    Returns:
        (detections at/above the floor, number of malformed predictions dropped)

    Raises:
        InferenceError: the payload itself is not a predictions object.
    """
    if not isinstance(payload, dict) or not isinstance(payload.get("predictions", []), list):
        raise InferenceError(f"Unexpected inference payload: {str(payload)[:200]}")

    detections: List[Detection] = []
    rejected = 0
    for pred in payload.get("predictions", []):
        try:
            det = Detection.from_prediction(pred)
        except UnknownLabel:
            continue
        except InvalidDetection:
            rejected += 1
            continue
        if det.confidence >= min_confidence:
            detections.append(det)
    return detections, rejected


class RoboflowDetector:
    """Hosted Roboflow model called over HTTP."""

    def __init__(
        self,
        model_id: str = config.PLAYER_BALL_MODEL,
        api_key: Optional[str] = None,
        api_url: str = config.ROBOFLOW_API_URL,
        timeout: float = config.DETECTION_TIMEOUT_S,
        min_confidence: float = 0.0,
        session: Optional[requests.Session] = None,
    ):
        """
        Args:
            model_id: Roboflow "project/version" identifier
            api_key: API key (defaults to $ROBOFLOW_API_KEY)
            api_url: Inference host
            timeout: Seconds before a call is abandoned
            min_confidence: Floor applied when detect() gets none
            session: Optional requests session (connection reuse, tests)
        """
        self.model_id = model_id
        self.api_key = api_key if api_key is not None else config.ROBOFLOW_API_KEY
        self.url = f"{api_url.rstrip('/')}/{model_id}"
        self.timeout = timeout
        self.min_confidence = min_confidence
        self.rejected = 0
        self._session = session or requests.Session()

    def detect(self, image: bytes, min_confidence: Optional[float] = None) -> List[Detection]:
        """
        Run the hosted model on one encoded frame (JPEG/PNG bytes).

        Raises:
            InferenceError: transport error, timeout, HTTP error or bad payload.
        """
        floor = self.min_confidence if min_confidence is None else min_confidence
        body = base64.b64encode(image).decode("ascii")
        try:
            response = self._session.post(
                self.url,
                params={"api_key": self.api_key},
                data=body,
                headers={"Content-Type": "application/x-www-form-urlencoded"},
                timeout=self.timeout,
            )
            response.raise_for_status()
            payload = response.json()
        except requests.exceptions.Timeout as e:
            raise InferenceError(f"{self.model_id}: timed out after {self.timeout}s") from e
        except requests.exceptions.RequestException as e:
            raise InferenceError(f"{self.model_id}: {e}") from e
        except ValueError as e:
            raise InferenceError(f"{self.model_id}: response is not JSON") from e

        detections, rejected = parse_predictions(payload, floor)
        if rejected:
            self.rejected += rejected
            print(f"[Detector] {self.model_id}: dropped {rejected} malformed prediction(s)")
        return detections

    def close(self):
        self._session.close()


class CompositeDetector:
    """
    Two models per frame: ball boxes from a dedicated ball model, everything
    else from the primary model.
    """

    def __init__(self, primary, ball, ball_min_confidence: float = config.BALL_MIN_CONFIDENCE):
        self.primary = primary
        self.ball = ball
        self.ball_min_confidence = ball_min_confidence

    def detect(self, image: bytes, min_confidence: Optional[float] = None) -> List[Detection]:
        others = [
            d for d in self.primary.detect(image, min_confidence)
            if d.label != DetectionClass.BALL
        ]
        balls = [
            d for d in self.ball.detect(image, self.ball_min_confidence)
            if d.label == DetectionClass.BALL
        ]
        return others + balls


class YoloDetector:
    """Local ultralytics model; COCO labels are mapped onto tennis classes."""

    def __init__(
        self,
        model_name: str = config.YOLO_MODEL,
        class_map: Optional[Dict[str, str]] = None,
        min_confidence: float = 0.25,
        img_size: int = config.DETECTION_IMG_SIZE,
        model=None,
    ):
        if model is None:
            # Lazy import: ultralytics is an optional extra
            from ultralytics import YOLO
            model = YOLO(model_name)
        self.model = model
        self.class_map = class_map or dict(config.YOLO_CLASS_MAP)
        self.min_confidence = min_confidence
        self.img_size = img_size
        self.rejected = 0

    def detect(self, image: bytes, min_confidence: Optional[float] = None) -> List[Detection]:
        floor = self.min_confidence if min_confidence is None else min_confidence
        frame = cv2.imdecode(np.frombuffer(image, np.uint8), cv2.IMREAD_COLOR)
        if frame is None:
            raise InferenceError("Frame bytes could not be decoded")
        try:
            results = self.model(frame, conf=floor, imgsz=self.img_size, verbose=False)
        except Exception as e:
            raise InferenceError(f"YOLO inference failed: {e}") from e

        detections, rejected = parse_predictions({"predictions": self._predictions(results[0])}, floor)
        if rejected:
            self.rejected += rejected
            print(f"[Detector] YOLO: dropped {rejected} malformed box(es)")
        return detections

    def _predictions(self, result) -> List[Dict[str, Any]]:
        """Boxes of mapped classes in the hosted-model prediction format."""
        if result.boxes is None or len(result.boxes) == 0:
            return []

        boxes = result.boxes.xywh.cpu().numpy()
        confidences = result.boxes.conf.cpu().numpy()
        class_ids = result.boxes.cls.cpu().numpy().astype(int)

        predictions = []
        for (cx, cy, w, h), conf, cls_id in zip(boxes, confidences, class_ids):
            label = self.class_map.get(self.model.names[cls_id])
            if label is None:
                continue
            predictions.append({
                "class": label,
                "confidence": float(conf),
                "x": float(cx),
                "y": float(cy),
                "width": float(w),
                "height": float(h),
            })
        return predictions
