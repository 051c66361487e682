from __future__ import annotations

import os

from portfolio import create_app

# Vercel entry
app = create_app()


if __name__ == "__main__":
    app.run(host="0.0.0.0", port=int(os.getenv("PORT", "5000")), debug=app.config["SETTINGS"].is_development)
