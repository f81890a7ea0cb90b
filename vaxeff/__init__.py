"""Vaccination rate vs. COVID-19 outcome charts from Our World in Data."""
