"""
Main application: live ASL alphabet recognition from the webcam.
"""
import cv2
import logging
import sys
from typing import Optional

from .config import load_config, configure_logging
from .errors import CollaboratorFailure
from .session import RecognitionSession
from .tracker import HandsTracker

logger = logging.getLogger(__name__)


class FingerspellingApp:
    """Main application class for ASL alphabet recognition."""

    def __init__(self, config_path: Optional[str] = None):
        """Initialize the application with configuration."""
        self.config = load_config(config_path)
        configure_logging(self.config.logging.level)

        self.tracker = HandsTracker.from_config(self.config)
        self.session = RecognitionSession.from_config(self.config, source=self.tracker)
        self.text = ""

        # Initialize camera
        self.cap = cv2.VideoCapture(self.config.camera.index)
        self.cap.set(cv2.CAP_PROP_FRAME_WIDTH, self.config.camera.width)
        self.cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self.config.camera.height)
        self.cap.set(cv2.CAP_PROP_FPS, self.config.camera.fps)

        if not self.cap.isOpened():
            raise RuntimeError(f"Failed to open camera {self.config.camera.index}")

    def run(self):
        """Run the main application loop."""
        print(f"Starting {self.config.display.window_name}")
        print("🤟 Supported letters: " + " ".join(self.session.matcher.vocabulary.names()))
        print("Press 'c' to clear the text, 'q' to quit")

        self.session.start()
        try:
            while True:
                ret, frame = self.cap.read()
                if not ret:
                    print("Failed to read frame from camera")
                    break

                if self.config.camera.mirror:
                    frame = cv2.flip(frame, 1)

                event = self.session.recognize_frame(frame)
                if event is not None:
                    self.text += event.text

                self._draw_overlay(frame, event)
                cv2.imshow(self.config.display.window_name, frame)

                key = cv2.waitKey(1) & 0xFF
                if key == ord('q'):
                    break
                if key == ord('c'):
                    self.text = ""
                    self.session.clear()
        finally:
            self.session.dispose()
            self.cap.release()
            cv2.destroyAllWindows()

    def _draw_overlay(self, frame, event):
        """Draw landmarks, the running text and session stats on the frame."""
        recent = self.session.get_recent(self.config.display.recent_count)

        if self.config.display.show_landmarks:
            for hand in self.session.last_hands:
                self.tracker.draw_landmarks(frame, hand.landmarks)

        if event is not None:
            status_text = f"Letter: {event.text} ({event.confidence:.0%})"
            status_color = (0, 255, 0)
        else:
            status_text = "Letter: -"
            status_color = (0, 0, 255)

        cv2.putText(frame, status_text, (10, 30), cv2.FONT_HERSHEY_SIMPLEX, 0.7, status_color, 2)
        cv2.putText(frame, f"Text: {self.text[-30:]}", (10, 60), cv2.FONT_HERSHEY_SIMPLEX, 0.7, (255, 255, 255), 2)
        cv2.putText(frame, "Recent: " + " ".join(e.text for e in recent), (10, 90),
                    cv2.FONT_HERSHEY_SIMPLEX, 0.5, (255, 255, 255), 1)

        if self.config.display.show_stats:
            stats = self.session.get_stats()
            stats_text = (f"Total: {stats.total_recognitions} | Avg: {stats.average_confidence:.0%} "
                          f"| Unique: {stats.unique_letters}")
            cv2.putText(frame, stats_text, (10, frame.shape[0] - 40), cv2.FONT_HERSHEY_SIMPLEX, 0.5, (255, 255, 255), 1)

        cv2.putText(frame, "Press 'c' to clear, 'q' to quit", (10, frame.shape[0] - 20),
                    cv2.FONT_HERSHEY_SIMPLEX, 0.5, (255, 255, 255), 1)

    def __del__(self):
        """Cleanup resources."""
        if hasattr(self, 'cap') and self.cap.isOpened():
            self.cap.release()


def main():
    """Entry point for the application."""
    config_path = sys.argv[1] if len(sys.argv) > 1 else None

    app = None
    try:
        app = FingerspellingApp(config_path=config_path)
        app.run()
    except KeyboardInterrupt:
        print("\nApplication interrupted by user")
        if app is not None:
            app.session.dispose()
    except CollaboratorFailure as e:
        logger.error(f"Hand tracking unavailable: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
