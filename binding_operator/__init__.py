"""
Service binding operator: cluster side of the binding engine.

Resolves services and applications through the kubernetes dynamic client,
persists what binding_engine computes and reports the outcome on the
binding's Ready condition. kopf handlers live in binding_operator.main.
"""
