from django.contrib import admin
from django.urls import path, include

urlpatterns = [
    path('admin/', admin.site.urls),

    # --- Authentication & Profile ---
    path('api/', include('users.urls')),

    # --- Exam Sessions (participants) & Result Review (admin) ---
    path('api/', include('assessments.urls')),

    # --- Admin Audit Trail ---
    path('api/admin/', include('cores.urls')),
]
