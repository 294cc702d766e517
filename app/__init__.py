"""
Video Motion API: backend social de video (usuarios, videos, comentarios,
tweets, likes, playlists, suscripciones y dashboard) sobre FastAPI.

La aplicación se arma con `app.main.create_app`.
"""
