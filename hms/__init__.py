"""Clinic administration app.

Models, services, serializers, views and URL routes for patient records,
admissions, pathology, infertility cases, cash shifts, user administration
and activity logging.
"""
