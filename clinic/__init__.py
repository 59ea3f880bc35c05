"""Django project package for the clinic administration backend."""
