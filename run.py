from charity_api import create_app
import os

app = create_app()

if __name__ == "__main__":
    port = int(os.getenv("PORT", 4000))
    app.run(host="127.0.0.1", port=port, debug=False, use_reloader=False)

# Local run:
# cp .env.example .env   (fill in Cloudinary + MongoDB values)
# PORT=4000 python run.py
# or: flask --app charity_api:create_app --debug run --port 4000
