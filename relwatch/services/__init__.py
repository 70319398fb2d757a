"""Release services: deployment polling and chat notifications."""
