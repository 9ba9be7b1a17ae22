#!/usr/bin/env python3
"""
Verification script to check if all dependencies are installed correctly
"""

import sys

def check_import(module_name, package_name=None):
    """Check if a module can be imported"""
    if package_name is None:
        package_name = module_name

    try:
        __import__(module_name)
        print(f"✓ {package_name} - OK")
        return True
    except ImportError as e:
        print(f"✗ {package_name} - FAILED: {e}")
        return False

def main():
    """Check all required dependencies"""
    print("Checking Gaze Pointer Dependencies...")
    print("=" * 50)

    print(f"Python: {sys.version.split()[0]}")
    print()

    required = [
        ("numpy", "NumPy"),
        ("yaml", "PyYAML"),
    ]

    detector = [
        ("cv2", "OpenCV (landmark recording)"),
        ("mediapipe", "MediaPipe (landmark detection)"),
    ]

    results = []
    print("Required:")
    for module, name in required:
        results.append(check_import(module, name))

    print()
    print("Detector (optional):")
    for module, name in detector:
        check_import(module, name)

    print("=" * 50)

    if all(results):
        print("\n✓ Required dependencies installed successfully!")
        print("\nReplay a recording:")
        print("  python main.py replay recordings/session.jsonl")
        print("\nRecord landmarks from a webcam (needs detector extras):")
        print("  python tools/record_landmarks.py recordings/session.jsonl")
        return 0

    print("\n✗ Missing required dependencies.")
    print("Install with:")
    print("  pip install -e .")
    print("\nOr with the detector extras:")
    print("  pip install -e .[detector]")
    return 1

if __name__ == "__main__":
    sys.exit(main())
