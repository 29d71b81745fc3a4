"""
Main Application Entry Point for the Communication Bridge.

Supports two ways of pairing the participants:
  1. VOICE — each participant describes their situation aloud
  2. MANUAL — both profiles are given on the command line

Once paired, input is taken according to the selected conversion mode
(webcam hand signs, microphone, or typed text) and converted for the
other participant.

Usage:
    python main.py --mode voice
    python main.py --mode manual --person1 normal --person2 deaf
    python main.py --mode manual --person1 deaf --person2 deaf --conversion sign-text
"""

import argparse
import logging
import sys
import threading

import cv2

import config
from src.compatibility import ModeId
from src.conversion import ConversionEngine
from src.errors import BridgeError, CapabilityUnavailableError, ErrorKind, InvalidTransitionError
from src.landmark_extractor import HandTrackerLoader
from src.pairing import PairingState, PairingStateMachine
from src.profiles import PROFILE_DEFINITIONS, ProfileId
from src.recognizer import GestureRecognizer
from src.speech import MicrophoneSpeechInput, Speaker
from src.utils import FPSCounter, draw_info_panel
from src.video import VideoSource, to_rgb

WINDOW_TITLE = "Communication Bridge - Hand Signs"


def _print_notice(notice):
    print(f"  [NOTICE] {notice.kind.value}: {notice.message}")


def _build_speaker():
    try:
        return Speaker()
    except CapabilityUnavailableError as exc:
        print(f"[WARNING] {exc}")
        print("  Audio output will be shown as text only.")
        return None


def _prompt_profile(prompt: str) -> ProfileId:
    """Ask on the terminal until a valid profile is chosen."""
    for number, definition in enumerate(PROFILE_DEFINITIONS, start=1):
        print(f"    {number}. {definition.label} ({definition.profile.value})")
    while True:
        answer = input(f"  {prompt}: ").strip()
        if answer.isdigit() and 1 <= int(answer) <= len(PROFILE_DEFINITIONS):
            return PROFILE_DEFINITIONS[int(answer) - 1].profile
        try:
            return ProfileId(answer)
        except ValueError:
            print("  [ERROR] Unknown profile, try again.")


def pair_by_voice(machine: PairingStateMachine) -> bool:
    """
    Run voice pairing until the pair is formed or the user gives up.

    A pair with no compatible mode restarts voice pairing from person 1.

    Returns:
        True once paired; False if the machine fell back to manual override.
    """
    settled = threading.Event()
    unmatched = threading.Event()

    def on_state_change(old, new):
        print(f"  [STATE] {old.value} -> {new.value}")
        if new in (PairingState.PAIRED, PairingState.MANUAL_OVERRIDE):
            settled.set()

    def on_notice(notice):
        _print_notice(notice)
        if notice.kind is ErrorKind.NO_MATCH:
            unmatched.set()

    machine.on_state_change = on_state_change
    machine.on_notice = on_notice

    print(f"\n{'='*50}")
    print("  Voice Pairing")
    print('  Example: "Tôi bị mù", "Tôi là người câm", "Tôi bị điếc"')
    print("  Press Ctrl+C to choose manually")
    print(f"{'='*50}\n")

    machine.start()
    try:
        while not settled.wait(0.5):
            if unmatched.is_set():
                unmatched.clear()
                # Let the apology finish before greeting again
                settled.wait(config.SPEECH_COMPLETION_TIMEOUT / 2)
                print("[INFO] Restarting voice pairing...")
                machine.restart()
    except KeyboardInterrupt:
        machine.request_manual_selection()

    return machine.is_paired


def pair_manually(machine: PairingStateMachine, person1=None, person2=None) -> bool:
    """Assign both profiles directly, prompting for any that are missing."""
    if machine.state is not PairingState.MANUAL_OVERRIDE:
        machine.request_manual_selection()

    print("\n[INFO] Manual selection")
    if person1 is None:
        person1 = _prompt_profile("Person 1")
    if person2 is None:
        person2 = _prompt_profile("Person 2")

    machine.assign_profiles(person1, person2)
    modes = machine.confirm_manual_selection()
    if not modes:
        print("[ERROR] No compatible communication mode for this pair.")
    return bool(modes)


def run_gesture_capture(mode: ModeId):
    """
    Capture hand signs from the webcam until the user sends or quits.

    Controls:
        SPACE — Send the accumulated text
        'c'   — Clear the accumulated text
        'q'   — Quit capture

    Returns:
        The accumulated text when sent, or None on quit / failure.
    """
    loader = HandTrackerLoader().start()
    try:
        source = VideoSource()
    except BridgeError as exc:
        print(f"[ERROR] {exc}")
        loader.shutdown()
        return None

    print("[INFO] Waiting for the hand tracker...")
    try:
        extractor = loader.wait_until_ready()
    except BridgeError as exc:
        print(f"[ERROR] {exc}")
        print("  Restart capture to try again.")
        source.release()
        loader.shutdown()
        return None

    recognizer = GestureRecognizer()
    fps_counter = FPSCounter()
    sent_text = None

    print("  Press SPACE to send, 'c' to clear, 'q' to quit")
    try:
        while True:
            frame = source.read()
            if frame is None:
                print("[ERROR] Failed to read frame.")
                break

            landmarks, _, results = extractor.extract(to_rgb(frame))
            display = extractor.draw_landmarks(frame, results)

            symbol = recognizer.update(landmarks)
            if symbol is not None:
                print(f"  ✓ Recognized: {symbol}  ->  {recognizer.get_text()}")

            display = draw_info_panel(
                display,
                mode=mode.value,
                symbol=recognizer.get_current_prediction(),
                text=recognizer.get_text(),
                fps=fps_counter.tick(),
                hand_visible=landmarks is not None,
            )
            cv2.imshow(WINDOW_TITLE, display)

            key = cv2.waitKey(1) & 0xFF
            if key == ord('q'):
                break
            elif key == ord('c'):
                recognizer.clear_text()
                print("  [CLEARED] Text reset.")
            elif key == ord(' '):
                sent_text = recognizer.get_text()
                break
    finally:
        # Stopping capture discards the stream
        recognizer.reset()
        source.release()
        cv2.destroyAllWindows()
        extractor.release()
        loader.shutdown()

    return sent_text


def _read_input(mode: ModeId, microphone: MicrophoneSpeechInput):
    """Read one message in the input modality of the mode."""
    if mode.needs_camera:
        return run_gesture_capture(mode)

    if mode.needs_microphone and microphone is not None:
        print("  [LISTENING] Speak now...")
        try:
            text = microphone.listen_once(timeout=10)
        except BridgeError as exc:
            print(f"[ERROR] {exc}")
            return None
        print(f"  Heard: {text or '(nothing)'}")
        return text or ""

    try:
        return input("  Message (empty line to quit): ") or None
    except EOFError:
        return None


def run_communication(machine: PairingStateMachine, speaker):
    """Convert messages with the selected mode until the user quits."""
    mode = machine.selected_mode
    first = machine.session.participant1_profile
    second = machine.session.participant2_profile

    print(f"\n{'='*50}")
    print(f"  Person 1: {first.label}")
    print(f"  Person 2: {second.label}")
    print("  Available modes:")
    for available in machine.available_modes:
        marker = "*" if available is mode else " "
        print(f"   {marker} {available.value:12s} {available.label}")
    print(f"{'='*50}\n")

    microphone = MicrophoneSpeechInput() if mode.needs_microphone else None
    engine = ConversionEngine(speaker)

    while True:
        text = _read_input(mode, microphone)
        if text is None:
            break
        result = engine.convert(mode, text)
        print(f"  [{result.kind.value.upper()}] {result.text}")
        if result.notice is not None:
            _print_notice(result.notice)


def main():
    parser = argparse.ArgumentParser(
        description="Communication Bridge — pairs participants with different "
                    "communication abilities and converts between text, speech and hand signs",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  Voice pairing:
    python main.py --mode voice

  Manual pairing:
    python main.py --mode manual --person1 normal --person2 blind
    python main.py --mode manual --person1 mute --person2 deaf --conversion sign-sign
        """
    )

    profile_choices = [p.value for p in ProfileId]
    parser.add_argument('--mode', type=str, default='voice',
                        choices=['voice', 'manual'],
                        help='How to pair the participants (default: voice)')
    parser.add_argument('--person1', type=str, default=None, choices=profile_choices,
                        help='Profile of the first participant (manual mode)')
    parser.add_argument('--person2', type=str, default=None, choices=profile_choices,
                        help='Profile of the second participant (manual mode)')
    parser.add_argument('--conversion', type=str, default=None,
                        choices=[m.value for m in ModeId],
                        help='Override the default conversion mode for the pair')
    parser.add_argument('--verbose', action='store_true',
                        help='Show debug logging')

    args = parser.parse_args()
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format="[%(levelname)s] %(name)s: %(message)s")

    speaker = _build_speaker()
    machine = PairingStateMachine(
        speech_input=MicrophoneSpeechInput() if args.mode == 'voice' else None,
        speaker=speaker,
        on_notice=_print_notice,
    )

    try:
        paired = False
        if args.mode == 'voice':
            paired = pair_by_voice(machine)
        if not paired:
            paired = pair_manually(machine, args.person1, args.person2)
        if not paired:
            sys.exit(1)

        if args.conversion:
            try:
                machine.select_mode(args.conversion)
            except InvalidTransitionError as exc:
                print(f"[ERROR] {exc}")
                sys.exit(1)

        run_communication(machine, speaker)
    except KeyboardInterrupt:
        print("\n[INFO] Stopped.")
    finally:
        machine.close()
        if speaker is not None:
            speaker.shutdown()


if __name__ == "__main__":
    main()
