from typing import Tuple

# Display
SCREEN_WIDTH: int = 1400
SCREEN_HEIGHT: int = 800
GAME_WIDTH: int = 900
GAME_HEIGHT: int = 800
CAMERA_WIDTH: int = 500
CAMERA_HEIGHT: int = 400
FPS: int = 60

# Motion analysis buffer (frames are resized to this before diffing)
ANALYSIS_WIDTH: int = 320
ANALYSIS_HEIGHT: int = 240

# Motion extraction
SAMPLE_STRIDE: int = 8               # sample every 8th pixel in both axes
NOISE_THRESHOLD: float = 25          # mean channel delta on a 0-255 scale
MOTION_RATIO: float = 0.001          # fraction of sampled pixels that must change
SENSITIVITY: float = 0.5             # fraction of the half-dimension that saturates to 1

# Direction arbitration
SMOOTHING_ALPHA: float = 0.8
DEAD_ZONE: float = 0.3

# Grid
NARROW_VIEWPORT: int = 640
NARROW_GRID: Tuple[int, int] = (15, 15)
WIDE_GRID: Tuple[int, int] = (30, 20)
START_POSITION: Tuple[int, int] = (10, 10)

# Speed (milliseconds between moves)
BASE_SPEED: int = 150
MIN_SPEED: int = 50
SPEED_DECREMENT: int = 2

# Run flow
COUNTDOWN_MS: int = 3000
MAX_NAME_LENGTH: int = 10
DEFAULT_PLAYER_NAME: str = "Unknown Pilot"

# Leaderboard
LEADERBOARD_SIZE: int = 10
LEADERBOARD_KEY: str = "neon_snake_leaderboard"
LEADERBOARD_FILE: str = "neon_snake_leaderboard.json"

# Commentary snapshots
SNAPSHOT_BUCKET_MS: int = 500        # at most one snapshot per bucket (~2 per second)
SNAPSHOT_QUALITY: int = 50
SNAPSHOT_TIMEOUT: float = 0.4        # seconds

# Colors - Neon Theme
BLACK: Tuple[int, int, int] = (0, 0, 0)
DARK_BLUE: Tuple[int, int, int] = (10, 10, 40)
NEON_GREEN: Tuple[int, int, int] = (57, 255, 20)
NEON_CYAN: Tuple[int, int, int] = (0, 255, 204)
NEON_BLUE: Tuple[int, int, int] = (0, 255, 255)
NEON_PINK: Tuple[int, int, int] = (255, 0, 85)
NEON_PURPLE: Tuple[int, int, int] = (191, 64, 191)
NEON_YELLOW: Tuple[int, int, int] = (255, 255, 0)
NEON_ORANGE: Tuple[int, int, int] = (255, 165, 0)
WHITE: Tuple[int, int, int] = (255, 255, 255)
GREY: Tuple[int, int, int] = (120, 120, 120)
