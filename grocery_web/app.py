"""Flask web app for UK supermarket price comparison.

Serves the JSON search API used by the frontend's single-item compare view
and basket mode.
"""

from pathlib import Path

from dotenv import load_dotenv
from flask import Flask, Response, jsonify

# Load environment variables from .env file (explicitly specify path)
env_path = Path(__file__).parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

from grocery_scrape import __version__  # noqa: E402
from grocery_scrape.config import SOURCE_NAME, STORE_NAMES  # noqa: E402

from .api import api  # noqa: E402
from .config import FLASK_DEBUG, FLASK_HOST, FLASK_PORT  # noqa: E402

app = Flask(__name__)
app.register_blueprint(api)


@app.route("/", methods=["GET"])
def index() -> Response:
    """Describe the service and its endpoints."""
    return jsonify({
        "service": "grocery-price-compare",
        "version": __version__,
        "source": SOURCE_NAME,
        "stores": list(STORE_NAMES),
        "endpoints": {
            "listing": "/api/search?q=mozzarella",
            "compare": "/api/search?q=mozzarella&compare=1",
            "detail": "/api/search?product=CODE&slug=product-slug",
            "basket": "POST /api/basket",
        },
    })


def main() -> None:
    app.run(host=FLASK_HOST, port=FLASK_PORT, debug=FLASK_DEBUG)


if __name__ == "__main__":
    main()
