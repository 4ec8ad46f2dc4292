import json
import os
import sys

import requests


def test_transcription(audio_path: str, base_url: str = "http://localhost:8001"):
    if not os.path.exists(audio_path):
        print(f"Error: {audio_path} not found.")
        return

    print(f"Sending {audio_path} for transcription...")
    with open(audio_path, "rb") as f:
        files = {"audio": (os.path.basename(audio_path), f, "audio/wav")}
        try:
            response = requests.post(f"{base_url}/transcribe", files=files, timeout=120)
            if response.status_code == 200:
                print("Success!")
                print(json.dumps(response.json(), indent=4, ensure_ascii=False))
            elif response.status_code == 409:
                print("Busy: another transcription is running.")
            else:
                print(f"Error {response.status_code}: {response.text}")
        except requests.RequestException as e:
            print(f"Request failed: {e}")

    metrics = requests.get(f"{base_url}/metrics/decode", timeout=10)
    print(json.dumps(metrics.json(), indent=4))


if __name__ == "__main__":
    if len(sys.argv) < 2:
        print("Usage: python scripts/test_api.py clip.wav [base_url]")
        sys.exit(1)
    test_transcription(sys.argv[1], *sys.argv[2:3])
