# test_api.py
# Manual smoke check against a running backend (not collected by pytest).
import sys, pprint

import requests

from backend.app.utils import image_to_base64

BASE = "http://127.0.0.1:8000"
IMAGE_PATH = sys.argv[1] if len(sys.argv) > 1 else "sample_space.jpg"  # <-- change to a real image path
MOVIE = sys.argv[2] if len(sys.argv) > 2 else "Parasite"

with open(IMAGE_PATH, "rb") as f:
    r = requests.post(f"{BASE}/api/analyze", json={"imageBase64": image_to_base64(f.read())}, timeout=120)
    print("Image status:", r.status_code)
    try:
        pprint.pprint(r.json())
    except ValueError:
        print(r.text)

r = requests.post(f"{BASE}/api/analyze-movie", json={"movieName": MOVIE}, timeout=120)
print("Movie status:", r.status_code)
try:
    pprint.pprint(r.json())
except ValueError:
    print(r.text)
