# core/email_templates.py
"""
Jinja2 sources of the notification emails

Styles live in the base template's <style> block and are inlined into
style="" attributes by the template engine before sending.
"""

BASE_TEMPLATE = """<!DOCTYPE html>
<html lang="{{ language }}">
<head>
<meta charset="utf-8">
<style>
  body { margin: 0; padding: 0; background-color: #ffffff; }
  .wrapper { font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto; padding: 20px; color: #333333; }
  .brand { background-color: #1E6BB8; padding: 20px; border-radius: 8px; color: #ffffff; text-align: center; }
  .brand h1 { margin: 0; font-size: 24px; }
  .brand p { margin: 5px 0 0; font-size: 14px; }
  .greeting { color: #1E6BB8; margin-top: 20px; }
  .panel { background-color: #F7FAFC; border-left: 4px solid #1E6BB8; padding: 15px; margin: 20px 0; }
  .panel p { margin: 5px 0; }
  .strong { font-weight: bold; }
  .section-title { color: #4A5568; border-bottom: 1px solid #E2E8F0; padding-bottom: 10px; }
  .overdue { color: #E53E3E; font-weight: bold; }
  .action { text-align: center; margin: 25px 0; }
  .button { background-color: #1E6BB8; color: #ffffff; padding: 12px 24px; text-decoration: none; border-radius: 4px; font-weight: bold; display: inline-block; }
  .pin { background-color: #F7FAFC; border: 1px solid #E2E8F0; border-radius: 4px; padding: 15px; margin: 20px 0; text-align: center; font-size: 18px; font-weight: bold; }
  .muted { color: #718096; font-size: 13px; }
  .footer { margin-top: 30px; padding-top: 20px; border-top: 1px solid #E2E8F0; color: #718096; font-size: 14px; }
</style>
</head>
<body>
<div class="wrapper">
  <div class="brand">
    <h1>NB</h1>
    <p>Digital Solutions</p>
  </div>
  <h2 class="greeting">{{ t.greeting.format(name=client_name) }}</h2>
{% block content %}{% endblock %}
  <div class="footer">
    <p>{{ t.regards }}<br><strong>{{ sender_name }}</strong><br>{{ issuer.name }}</p>
    <p class="muted">{{ t.automated }}</p>
  </div>
</div>
</body>
</html>
"""

INVOICE_CREATED_TEMPLATE = """{% extends "base.html" %}
{% block content %}
  <p>{{ t.invoice_intro.format(project=project_name) }}</p>
  <div class="panel">
    <p class="strong">{{ t.invoice_number }}: {{ invoice.number }}</p>
    <p>{{ t.issue_date }}: {{ issue_date }}</p>
    <p>{{ t.due_date }}: {{ due_date }}</p>
    <p class="strong">{{ t.amount_due }}: {{ amount }}</p>
    <p>{{ t.status }}: {{ status }}</p>
  </div>
  <p>{{ t.view_intro }}</p>
  <div class="action">
    <a class="button" href="{{ link }}">{{ t.view_invoice }}</a>
  </div>
  <p>{{ t.invoice_help }}</p>
{% endblock %}
"""

INVOICE_REMINDER_TEMPLATE = """{% extends "base.html" %}
{% block content %}
  <p{% if reminder == 'overdue' %} class="overdue"{% endif %}>{{ message }}</p>
  <h3 class="section-title">{{ t.payment_details }}</h3>
  <div class="panel">
    <p class="strong">{{ t.invoice_number }}: {{ invoice.number }}</p>
    <p>{{ t.issue_date }}: {{ issue_date }}</p>
    <p>{{ t.due_date }}: {{ due_date }}</p>
    <p class="strong">{{ t.amount }}: {{ amount }}</p>
  </div>
  <h3 class="section-title">{{ t.payment_instructions }}</h3>
  <p><strong>{{ t.bank_transfer }}:</strong></p>
  <div class="panel">
    <p>{{ issuer.account_holder }}</p>
    <p>IBAN: {{ issuer.iban }}</p>
    <p>SWIFT/BIC: {{ issuer.swift }}</p>
    <p>{{ issuer.bank_name }}</p>
    <p>{{ t.reference }}: {{ invoice.number }}</p>
  </div>
  <p class="muted">{{ t.vat_exempt }}</p>
  {% if link %}
  <div class="action">
    <a class="button" href="{{ link }}">{{ t.view_invoice }}</a>
  </div>
  {% endif %}
  <p>{{ t.thank_you }}</p>
  <p>{{ t.invoice_help }}</p>
{% endblock %}
"""

PROJECT_SHARE_TEMPLATE = """{% extends "base.html" %}
{% block content %}
  <p>{{ t.share_intro.format(sender=sender_name) }}</p>
  <div class="panel">
    <p class="strong">{{ t.project_name }}: {{ project_name }}</p>
    {% if project_description %}<p>{{ project_description }}</p>{% endif %}
  </div>
  <p>{{ t.share_access }}</p>
  <div class="action">
    <a class="button" href="{{ link }}">{{ t.view_project }}</a>
  </div>
  <div class="pin">{{ t.pin }}: {{ pin }}</div>
  {% if expires_at %}
  <p class="muted">{{ t.valid_until.format(date=expires_at) }}</p>
  {% else %}
  <p class="muted">{{ t.valid_forever }}</p>
  {% endif %}
  <p>{{ t.share_help }}</p>
{% endblock %}
"""

TEMPLATES = {
    'base.html': BASE_TEMPLATE,
    'invoice_created.html': INVOICE_CREATED_TEMPLATE,
    'invoice_reminder.html': INVOICE_REMINDER_TEMPLATE,
    'project_share.html': PROJECT_SHARE_TEMPLATE,
}
