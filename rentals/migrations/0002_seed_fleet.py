from django.db import migrations


def seed_fleet(apps, schema_editor):
    Vehicle = apps.get_model("rentals", "Vehicle")

    fleet = [
        (
            "Executive Elite",
            "Mercedes-Benz V-Class 2024",
            7,
            "4500",
            "https://images.unsplash.com/photo-1544636331-e26879cd4d9b?w=800&q=80",
            "Experience the pinnacle of luxury travel with our flagship Mercedes-Benz V-Class. "
            "Perfect for executive meetings, airport transfers, and premium corporate events.",
            {"wifi": True, "ac": True, "vip_seats": True},
        ),
        (
            "VIP Royale",
            "Toyota Alphard Executive Lounge 2024",
            6,
            "3800",
            "https://images.unsplash.com/photo-1558618666-fcd25c85cd64?w=800&q=80",
            "The Toyota Alphard Executive Lounge offers unmatched comfort with reclining captain "
            "seats, premium audio system, and ambient lighting for a first-class cabin feel.",
            {"wifi": True, "ac": True, "vip_seats": True},
        ),
        (
            "Business Class",
            "Ford Transit Luxury 2023",
            12,
            "2800",
            "https://images.unsplash.com/photo-1614791937614-73ea98b0ed59?w=800&q=80",
            "Ideal for group corporate transfers and team outings. Spacious interior with "
            "professional leather seating and integrated entertainment system.",
            {"wifi": True, "ac": True, "vip_seats": False},
        ),
        (
            "City Cruiser",
            "Hyundai H-1 Premium 2023",
            9,
            "1800",
            "https://images.unsplash.com/photo-1555215695-3004980ad54e?w=800&q=80",
            "Perfect for city tours, family outings, and small group transfers. Comfortable, "
            "reliable, and equipped with modern amenities.",
            {"wifi": False, "ac": True, "vip_seats": False},
        ),
    ]

    for name, model, seats, price, image_url, description, features in fleet:
        Vehicle.objects.get_or_create(
            name=name,
            defaults={
                "model": model,
                "seats": seats,
                "price_per_day": price,
                "image_url": image_url,
                "description": description,
                "features": features,
            },
        )


class Migration(migrations.Migration):
    dependencies = [
        ("rentals", "0001_initial"),
    ]

    operations = [
        migrations.RunPython(seed_fleet, migrations.RunPython.noop),
    ]
