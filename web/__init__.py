"""Web demo: Flask app serving the templated page and public/ assets."""
