"""
Typed flows: validate input, render the prompt, call the model, validate the reply.

Callers bind to the typed functions in the flow modules
(``generate_kpi_summary``, ``analyze_investigation``, ``analyze_jsa``,
``generate_toolbox_talk``) and pass the ``FlowRunner`` built at startup.
"""
