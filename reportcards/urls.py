from django.urls import path

from . import views

app_name = 'reportcards'

urlpatterns = [
    # Report cards
    path('bulk/', views.bulk_report_cards, name='bulk'),
    path('single/', views.single_report_card, name='single'),
    path('bulk-pdfs/', views.bulk_report_cards_pdf, name='bulk_pdfs'),
    path('bulk-html/', views.bulk_report_cards_html, name='bulk_html'),
    path('broadsheet/', views.class_broadsheet, name='broadsheet'),

    # Writes
    path('marks/save/', views.save_marks, name='save_marks'),
    path('bands/save/', views.save_bands, name='save_bands'),
    path('snapshots/', views.queue_snapshots, name='snapshots'),
]
