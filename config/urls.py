"""
URL configuration for the Rentals project.
"""

from django.contrib import admin
from django.urls import path, include

admin.site.site_header = "Rentals Admin"
admin.site.site_title = "Admin Portal"
admin.site.index_title = "Apartments, rates and bookings"

urlpatterns = [
    path('admin/', admin.site.urls),
    path('', include('rentals.urls')),
]
