"""
Configuration constants for the Communication Bridge.
All thresholds, timings, device settings and spoken prompts are centralized here.
"""

# ─── Webcam ───────────────────────────────────────────────────────────────────
CAMERA_INDEX = 0
FRAME_WIDTH = 640
FRAME_HEIGHT = 480

# ─── MediaPipe Hands ──────────────────────────────────────────────────────────
MAX_NUM_HANDS = 1             # Multi-hand results are truncated to the first hand
MODEL_COMPLEXITY = 1
MIN_DETECTION_CONFIDENCE = 0.5
MIN_TRACKING_CONFIDENCE = 0.5
TRACKER_INIT_TIMEOUT = 10.0   # Seconds the tracker may take to become ready

# ─── Landmark Dimensions ─────────────────────────────────────────────────────
NUM_HAND_LANDMARKS = 21
HAND_DIMS = 3  # x, y, z

# ─── Gesture Classification ──────────────────────────────────────────────────
OK_DISTANCE_THRESHOLD = 0.05  # Thumb-tip to index-tip distance for the OK ring

# ─── Speech ──────────────────────────────────────────────────────────────────
SPEECH_LANGUAGE = "vi-VN"
SPEECH_RATE = 150             # pyttsx3 words per minute
SPEECH_VOLUME = 1.0
PHRASE_TIME_LIMIT = 8         # Max seconds of audio per recognized phrase
AMBIENT_NOISE_DURATION = 0.5  # Seconds spent calibrating the microphone

# ─── Pairing Timings ─────────────────────────────────────────────────────────
WELCOME_DELAY = 1.0              # Pause before the greeting is spoken
LISTEN_RESUME_DELAY = 1.0        # Pause between an announcement and listening again
SPEECH_COMPLETION_TIMEOUT = 12.0 # Upper bound when waiting for speech to finish

# ─── Prompts ─────────────────────────────────────────────────────────────────
WELCOME_PROMPT = (
    "Xin chào! Chào mừng bạn đến với ứng dụng Cầu Nối Giao Tiếp. "
    "Bạn có vấn đề gì về giao tiếp? Vui lòng nói rõ tình trạng của bạn."
)
PERSON1_DETECTED_PROMPT = (
    "Đã nhận diện: {label}. Bây giờ, người thứ hai vui lòng nói về tình trạng của mình."
)
PERSON2_DETECTED_PROMPT = (
    "Đã nhận diện: {label}. Hệ thống đang tự động kết nối cho hai bạn."
)
READY_PROMPT = (
    "Đã sẵn sàng. Chế độ: {mode}. Hệ thống sẽ tự động bắt đầu các tính năng cần thiết."
)
NO_COMPATIBLE_MODE_PROMPT = (
    "Xin lỗi, không tìm thấy phương thức giao tiếp phù hợp. Vui lòng thử lại."
)

# ─── Conversion Output ───────────────────────────────────────────────────────
SIGN_INPUT_PLACEHOLDER = "Xin chào, tôi đang sử dụng ngôn ngữ ký hiệu"
AUDIO_ANNOUNCEMENT_TEMPLATE = 'Đang phát âm thanh: "{text}"'
SIGN_RENDERING_TEMPLATE = "Chuyển đổi sang ngôn ngữ ký hiệu: {text}"
