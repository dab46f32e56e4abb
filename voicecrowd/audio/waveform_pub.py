"""Fan-out of live waveform frames to screen listeners over pubsub."""

import logging

from pubsub import pub

from ..models.events import WaveformFrame

logger = logging.getLogger(__name__)


class WaveformPublisher:
    """Sends each frame to the listeners of one topic.

    Frames produced while nobody is listening are counted and dropped; the
    recorder keeps sampling regardless of whether a screen is attached.
    """

    def __init__(self, topic: str = "waveform.frame"):
        self.topic = topic
        self.published_frames = 0
        self.dropped_frames = 0
        self._last_sequence = -1

    @property
    def has_listeners(self) -> bool:
        topic = pub.getDefaultTopicMgr().getTopic(self.topic, okIfNone=True)
        return topic is not None and topic.hasListeners()

    def publish_frame(self, frame: WaveformFrame) -> bool:
        """Deliver a frame; returns False when it was dropped.

        Out-of-order frames (a sequence number not above the last one sent)
        are dropped so a screen never steps backwards.
        """
        if frame.sequence_number <= self._last_sequence or not self.has_listeners:
            self.dropped_frames += 1
            return False

        pub.sendMessage(self.topic, frame=frame)
        self._last_sequence = frame.sequence_number
        self.published_frames += 1
        if self.published_frames == 1:
            logger.debug(f"First waveform frame published on {self.topic}")
        return True

    def get_publish_stats(self) -> dict:
        return {
            "topic": self.topic,
            "published_frames": self.published_frames,
            "dropped_frames": self.dropped_frames,
        }
