from .analytic_fields import AnalyticField, evaluate, rotated_sphere_coord
